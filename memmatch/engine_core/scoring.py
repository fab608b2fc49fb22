"""
Scoring - Match points, streak bonus and star rating.

The streak is global (not per player): it counts consecutive matches across
the whole table and resets on any mismatch.
"""

from __future__ import annotations

BASE_MATCH_POINTS = 10
STREAK_BONUS_PER_MATCH = 2

THREE_STAR_TIME = 30.0
TWO_STAR_TIME = 60.0


def streak_bonus(streak_before: int) -> int:
    """Bonus for a match made while `streak_before` matches were already chained."""
    return STREAK_BONUS_PER_MATCH * max(streak_before, 0)


def match_points(streak_before: int) -> int:
    """
    Points awarded for a match.

    The Nth consecutive match (1-indexed) is worth 10 + 2 * (N - 1).
    """
    return BASE_MATCH_POINTS + streak_bonus(streak_before)


def calculate_stars(game_time: float, perfect: bool, won: bool = True) -> int:
    """1 to 3 stars. Lost games always get a single star."""
    if not won:
        return 1
    if perfect and game_time < THREE_STAR_TIME:
        return 3
    if perfect or game_time < TWO_STAR_TIME:
        return 2
    return 1


def format_time(seconds: float) -> str:
    """Render seconds as m:ss."""
    seconds = max(seconds, 0)
    return f"{int(seconds // 60)}:{int(seconds % 60):02d}"

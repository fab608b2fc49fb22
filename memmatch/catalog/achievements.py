"""
Achievements - Static catalog and stateless evaluator.

Every rule is an independent predicate over a completed game's summary.
Several can fire for one game. The evaluator does not know what the player
has already unlocked; deduplication belongs to the stats store.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable

from ..engine_core.state import Difficulty, GameMode, GameSummary


@dataclass(frozen=True)
class AchievementRecord:
    """A catalog entry."""
    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[GameSummary], bool]


def _human_won(summary: GameSummary) -> bool:
    """A human is the sole top scorer. Ties do not count."""
    if not summary.won or len(summary.winner_ids) != 1:
        return False
    humans = {p.player_id for p in summary.players if not p.is_ai}
    return summary.winner_ids[0] in humans


ACHIEVEMENTS: list[AchievementRecord] = [
    AchievementRecord(
        id="perfect_memory",
        name="Perfect Memory",
        description="Complete a game without any mistakes",
        icon="🧠",
        condition=lambda s: s.won and s.perfect_game,
    ),
    AchievementRecord(
        id="speed_runner",
        name="Speed Runner",
        description="Complete a game in under 30 seconds",
        icon="⚡",
        condition=lambda s: s.won and s.game_time < 30,
    ),
    AchievementRecord(
        id="combo_master",
        name="Combo Master",
        description="Get 3 or more matches in a row",
        icon="🔥",
        condition=lambda s: s.best_streak >= 3,
    ),
    AchievementRecord(
        id="time_master",
        name="Time Master",
        description="Win a Time Attack game",
        icon="⏰",
        condition=lambda s: s.mode == GameMode.TIME_ATTACK and s.won,
    ),
    AchievementRecord(
        id="efficiency_expert",
        name="Efficiency Expert",
        description="Win a Limited Moves game",
        icon="🎯",
        condition=lambda s: s.mode == GameMode.LIMITED_MOVES and s.won,
    ),
    AchievementRecord(
        id="endless_warrior",
        name="Endless Warrior",
        description="Reach level 5 in Endless mode",
        icon="♾️",
        condition=lambda s: s.mode == GameMode.ENDLESS and s.level >= 5,
    ),
    AchievementRecord(
        id="ai_destroyer",
        name="AI Destroyer",
        description="Beat Hard AI",
        icon="🤖",
        condition=lambda s: (
            s.mode == GameMode.AI
            and s.ai_difficulty == Difficulty.HARD
            and _human_won(s)
        ),
    ),
    AchievementRecord(
        id="social_player",
        name="Social Player",
        description="Play a multiplayer game",
        icon="👥",
        condition=lambda s: s.mode == GameMode.MULTIPLAYER,
    ),
]

_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def evaluate(summary: GameSummary) -> list[AchievementRecord]:
    """All catalog entries whose condition holds for this game."""
    return [a for a in ACHIEVEMENTS if a.condition(summary)]


def get_achievement(achievement_id: str) -> AchievementRecord | None:
    return _BY_ID.get(achievement_id)


def achievement_progress(unlocked_ids: Iterable[str]) -> dict[str, int]:
    """Unlocked/total/percentage over distinct known ids."""
    unlocked = len({i for i in unlocked_ids if i in _BY_ID})
    total = len(ACHIEVEMENTS)
    return {
        "unlocked": unlocked,
        "total": total,
        # Half rounds up.
        "percentage": int(unlocked * 100 / total + 0.5) if total else 0,
    }

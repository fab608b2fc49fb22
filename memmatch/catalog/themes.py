"""
Themes - Card face sets.

The engine only tags cards with a theme name; faces are looked up by the
presentation layer using the card's pair id.
"""

from __future__ import annotations
import random

THEMES: dict[str, list[str]] = {
    "animals": ["🐶", "🐱", "🐭", "🐹", "🐰", "🦊", "🐻", "🐼", "🐨", "🐯",
                "🦁", "🐮", "🐷", "🐸", "🐵", "🐔", "🐧", "🐦", "🦆", "🦉"],
    "fruits": ["🍎", "🍐", "🍊", "🍋", "🍌", "🍉", "🍇", "🍓", "🫐", "🍈",
               "🍒", "🍑", "🥭", "🍍", "🥥", "🥝", "🍅", "🥑", "🍆", "🌽"],
    "space": ["🚀", "🛸", "🌍", "🌙", "⭐", "☄️", "🪐", "🌞", "🌌", "👽",
              "🛰️", "🔭", "🌠", "🌑", "🌕", "🌎", "🌏", "💫", "✨", "🌟"],
    "ocean": ["🐙", "🦑", "🦐", "🦞", "🦀", "🐡", "🐠", "🐟", "🐬", "🐳",
              "🐋", "🦈", "🐚", "🪸", "🐢", "🦭", "🌊", "⚓", "🏝️", "🪼"],
}

DEFAULT_THEME = "animals"


def random_theme(rng: random.Random | None = None) -> str:
    return (rng or random).choice(sorted(THEMES))


def card_face(theme: str, pair_id: int) -> str:
    """Face for a pair id; unknown themes use the default set."""
    faces = THEMES.get(theme, THEMES[DEFAULT_THEME])
    return faces[pair_id % len(faces)]

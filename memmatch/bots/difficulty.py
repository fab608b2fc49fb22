"""
Difficulty Profiles - How each AI tier plays.

Profiles adjust:
- Randomness (chance of a deliberately uninformed move)
- Memory window (how many recent observations the tier consults)
- Think delay (base pause before the AI starts its turn)
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.memory import MEMORY_CAPACITY
from ..engine_core.state import Difficulty


@dataclass(frozen=True)
class DifficultyProfile:
    """Tunable knobs for one AI tier."""
    name: str
    description: str = ""
    random_rate: float = 1.0  # Probability of a purely random move
    memory_window: int = 0  # Most recent entries consulted
    base_delay: float = 1.5  # Seconds before the AI starts its turn


EASY = DifficultyProfile(
    name="Easy",
    description="Picks at random, close to chance play",
    random_rate=1.0,
    memory_window=0,
    base_delay=2.0,
)

MEDIUM = DifficultyProfile(
    name="Medium",
    description="Remembers the last few cards, plays randomly 40% of the time",
    random_rate=0.4,
    memory_window=6,
    base_delay=1.5,
)

HARD = DifficultyProfile(
    name="Hard",
    description="Uses its whole memory and explores unseen cards, errs 10% of the time",
    random_rate=0.1,
    memory_window=MEMORY_CAPACITY,
    base_delay=1.0,
)

PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: EASY,
    Difficulty.MEDIUM: MEDIUM,
    Difficulty.HARD: HARD,
}


def get_profile(difficulty: Difficulty | str | None) -> DifficultyProfile:
    return PROFILES[Difficulty.parse(difficulty)]

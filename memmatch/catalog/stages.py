"""
Stages - The ten-step progression table and difficulty board sizes.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.state import Difficulty


@dataclass(frozen=True)
class StageConfig:
    stage: int
    rows: int
    cols: int
    pairs: int
    preview_time: int
    difficulty: str  # label shown to the player


STAGES: tuple[StageConfig, ...] = (
    StageConfig(stage=1, rows=2, cols=2, pairs=2, preview_time=5, difficulty="Easy"),
    StageConfig(stage=2, rows=2, cols=3, pairs=3, preview_time=4, difficulty="Easy"),
    StageConfig(stage=3, rows=2, cols=4, pairs=4, preview_time=4, difficulty="Easy"),
    StageConfig(stage=4, rows=3, cols=4, pairs=6, preview_time=3, difficulty="Medium"),
    StageConfig(stage=5, rows=4, cols=4, pairs=8, preview_time=3, difficulty="Medium"),
    StageConfig(stage=6, rows=4, cols=5, pairs=10, preview_time=3, difficulty="Medium"),
    StageConfig(stage=7, rows=4, cols=6, pairs=12, preview_time=2, difficulty="Hard"),
    StageConfig(stage=8, rows=5, cols=6, pairs=15, preview_time=2, difficulty="Hard"),
    StageConfig(stage=9, rows=5, cols=7, pairs=17, preview_time=2, difficulty="Hard"),
    StageConfig(stage=10, rows=5, cols=8, pairs=20, preview_time=1, difficulty="Expert"),
)

MAX_STAGE = len(STAGES)


def get_stage(stage_number: int) -> StageConfig:
    """Look up a stage; unknown numbers fall back to stage 1."""
    for stage in STAGES:
        if stage.stage == stage_number:
            return stage
    return STAGES[0]


def is_stage_unlocked(stage_number: int, unlocked_stages: int) -> bool:
    """Stage n is playable once n-1 has been cleared."""
    return 1 <= stage_number <= min(max(unlocked_stages, 1), MAX_STAGE)


def endless_stage(level: int) -> StageConfig:
    """Board used at an endless level; the last stage repeats."""
    return get_stage(min(max(level, 1), MAX_STAGE))


@dataclass(frozen=True)
class ModeConfig:
    """Board for a plain difficulty pick (AI and multiplayer games)."""
    rows: int
    cols: int
    pairs: int
    preview_time: int


GAME_MODE_CONFIGS: dict[Difficulty, ModeConfig] = {
    Difficulty.EASY: ModeConfig(rows=2, cols=2, pairs=2, preview_time=5),
    Difficulty.MEDIUM: ModeConfig(rows=4, cols=4, pairs=8, preview_time=3),
    Difficulty.HARD: ModeConfig(rows=6, cols=6, pairs=18, preview_time=2),
}


def get_mode_config(difficulty: str | Difficulty | None) -> ModeConfig:
    """Board for a difficulty; anything unknown plays as medium."""
    return GAME_MODE_CONFIGS[Difficulty.parse(difficulty)]

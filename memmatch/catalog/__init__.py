"""
Catalog - Static game data: achievements, stages, board sizes and themes.
"""

from .achievements import (
    AchievementRecord,
    ACHIEVEMENTS,
    evaluate,
    get_achievement,
    achievement_progress,
)
from .stages import (
    StageConfig,
    STAGES,
    MAX_STAGE,
    ModeConfig,
    get_stage,
    get_mode_config,
    is_stage_unlocked,
    endless_stage,
)
from .themes import THEMES, random_theme, card_face

__all__ = [
    "AchievementRecord",
    "ACHIEVEMENTS",
    "evaluate",
    "get_achievement",
    "achievement_progress",
    "StageConfig",
    "STAGES",
    "MAX_STAGE",
    "ModeConfig",
    "get_stage",
    "get_mode_config",
    "is_stage_unlocked",
    "endless_stage",
    "THEMES",
    "random_theme",
    "card_face",
]

"""
Bots module - AI opponents.

Provides:
- MovePolicy: Interface for AI move selection
- EasyPolicy / MediumPolicy / HardPolicy: The three tiers
- DifficultyProfile: Per-tier randomness, memory window and pacing
- AITurnDriver: Plays AI seats through the engine scheduler
"""

from .policy import (
    MovePolicy,
    MoveDecision,
    EasyPolicy,
    MediumPolicy,
    HardPolicy,
    POLICIES,
    create_policy,
    choose_move,
)
from .difficulty import DifficultyProfile, PROFILES, get_profile
from .driver import AITurnDriver, ai_think_delay

__all__ = [
    "MovePolicy",
    "MoveDecision",
    "EasyPolicy",
    "MediumPolicy",
    "HardPolicy",
    "POLICIES",
    "create_policy",
    "choose_move",
    "DifficultyProfile",
    "PROFILES",
    "get_profile",
    "AITurnDriver",
    "ai_think_delay",
]

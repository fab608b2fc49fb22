"""
Engine Core - Board state, match resolution and timing.

The engine is the runtime that:
1. Deals a deck for a session
2. Runs the preview countdown
3. Validates and records flips
4. Resolves pairs, scores them and rotates turns
5. Detects completion and builds the game summary
"""

from .state import (
    Card, Player, PowerUps, GameSession, GameSummary,
    GamePhase, GameMode, Difficulty, PowerUpKind,
)
from .memory import AIMemory, AIMemoryEntry, MEMORY_CAPACITY
from .action import (
    FlipOutcome, FlipResult, Rejected, Pending, Matched, Mismatched,
    GameComplete, PowerUpResult, RejectReason,
)
from .deck import generate_deck, shuffle_unmatched
from .scheduler import Scheduler, ManualClock, SystemClock
from .scoring import match_points, calculate_stars
from .engine import MatchEngine

__all__ = [
    "Card",
    "Player",
    "PowerUps",
    "GameSession",
    "GameSummary",
    "GamePhase",
    "GameMode",
    "Difficulty",
    "PowerUpKind",
    "AIMemory",
    "AIMemoryEntry",
    "MEMORY_CAPACITY",
    "FlipOutcome",
    "FlipResult",
    "Rejected",
    "Pending",
    "Matched",
    "Mismatched",
    "GameComplete",
    "PowerUpResult",
    "RejectReason",
    "generate_deck",
    "shuffle_unmatched",
    "Scheduler",
    "ManualClock",
    "SystemClock",
    "match_points",
    "calculate_stars",
    "MatchEngine",
]

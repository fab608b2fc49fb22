"""
Session Module - Manages ephemeral game sessions.

A session represents one sitting at the table:
- Created when the player picks a mode
- Holds the current board's engine and game loop
- Records the finished game in the stats store
- Destroyed when the player leaves

Only the aggregate stats blob outlives a session.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, LoopUpdate, BoardView, CardView

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "LoopUpdate",
    "BoardView",
    "CardView",
]

"""
API Module - Local client interface.

Exposes the engine via a JSON REST API so any presentation layer can:
1. Start a game in one of the six modes
2. Flip cards and use power-ups
3. Poll the board while timers and AI turns run
4. Read stats, stages and achievements

All game state is session-scoped. Only the stats blob is persisted.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    FlipRequest,
    PreferencesRequest,
    # Responses
    BoardResponse,
    PowerUpResponse,
    StatsResponse,
    ErrorResponse,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "FlipRequest",
    "PreferencesRequest",
    # Responses
    "BoardResponse",
    "PowerUpResponse",
    "StatsResponse",
    "ErrorResponse",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]

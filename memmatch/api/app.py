"""
FastAPI Application - Local REST API for a presentation layer.

Endpoints:
    POST   /api/v1/sessions                        Start a game
    GET    /api/v1/sessions                        List active sessions
    GET    /api/v1/sessions/{id}                   Current board
    DELETE /api/v1/sessions/{id}                   End session
    POST   /api/v1/sessions/{id}/flip              Flip a card
    POST   /api/v1/sessions/{id}/power-ups/{kind}  Use hint / shuffle / extra_time
    POST   /api/v1/sessions/{id}/next-level        Continue an endless or stage run
    GET    /api/v1/stats                           Aggregate stats
    PUT    /api/v1/preferences                     Sound and haptics toggles
    GET    /api/v1/stages                          Stage table with unlock flags
    GET    /api/v1/achievements                    Achievement catalog with progress
    GET    /health                                 Health check

Timing:
    Timers (preview countdown, pair resolution, AI turns) run on wall time.
    Every request first fires whatever is already due, so polling
    GET /sessions/{id} is enough to watch an AI play.

All responses are JSON with explicit Pydantic schemas.
Run with: uvicorn memmatch.api.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional
import logging

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, Request
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..errors import MemmatchError, SessionNotFoundError
    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        FlipRequest,
        PreferencesRequest,
        # Response models
        BoardResponse,
        PowerUpResponse,
        SessionListResponse,
        EndSessionResponse,
        StageListResponse,
        AchievementListResponse,
        StatsResponse,
        HealthResponse,
        ErrorResponse,
        # Enums
        ErrorCode,
        PowerUpName,
    )

    api_service = service or APIService()
    settings = api_service.context.settings

    @asynccontextmanager
    async def lifespan(app):
        yield
        api_service.context.teardown()

    app = FastAPI(
        title="Memmatch API",
        description="""
Memory matching game engine - solo, versus AI, and pass-and-play.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist or has ended |
| `INVALID_REQUEST` | Request cannot be honoured in the current state |
| `STAGE_LOCKED` | Stage has not been unlocked yet |
| `VALIDATION_ERROR` | Request body failed validation |

Rejected flips are not errors: they come back as `rejected` events on the board.
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(MemmatchError)
    async def memmatch_error_handler(request: Request, exc: MemmatchError):
        status_code = 404 if isinstance(exc, SessionNotFoundError) else 400
        return make_error_response(ErrorCode(exc.error_code), str(exc), status_code=status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            status_code=422,
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in exc.errors()
            ]},
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=BoardResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid mode or locked stage"}},
        tags=["Sessions"],
        summary="Start a new game",
    )
    async def create_session(request: CreateSessionRequest) -> BoardResponse:
        """
        Deal a board and start the preview countdown.

        In `ai` mode the second seat is the AI at the chosen difficulty.
        In `multiplayer` mode `player_count` seats share the screen.
        """
        return api_service.create_session(request)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        return api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=BoardResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the current board",
    )
    async def get_session(session_id: str) -> BoardResponse:
        """Current board, plus every event since the previous call."""
        return api_service.get_board(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and cancel its timers."""
        return api_service.end_session(session_id, reason)

    @app.post(
        "/api/v1/sessions/{session_id}/next-level",
        response_model=BoardResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Deal the next level",
    )
    async def next_level(session_id: str) -> BoardResponse:
        return api_service.next_level(session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/flip",
        response_model=BoardResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Flip a card",
    )
    async def flip(session_id: str, request: FlipRequest) -> BoardResponse:
        """
        Turn a card face-up for the human whose turn it is.

        The second card of a pair starts a one second resolution; the
        Matched or Mismatched event shows up on a later call.
        """
        return api_service.flip(session_id, request.index)

    @app.post(
        "/api/v1/sessions/{session_id}/power-ups/{kind}",
        response_model=PowerUpResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Use a power-up",
    )
    async def use_power_up(session_id: str, kind: PowerUpName) -> PowerUpResponse:
        return api_service.use_power_up(session_id, kind.value)

    # =========================================================================
    # Stats and Catalog Endpoints
    # =========================================================================

    @app.get("/api/v1/stats", response_model=StatsResponse, tags=["Stats"])
    async def get_stats() -> StatsResponse:
        return api_service.get_stats()

    @app.put("/api/v1/preferences", response_model=StatsResponse, tags=["Stats"])
    async def set_preferences(request: PreferencesRequest) -> StatsResponse:
        return api_service.set_preferences(request)

    @app.get("/api/v1/stages", response_model=StageListResponse, tags=["Catalog"])
    async def list_stages() -> StageListResponse:
        return api_service.list_stages()

    @app.get("/api/v1/achievements", response_model=AchievementListResponse, tags=["Catalog"])
    async def list_achievements() -> AchievementListResponse:
        return api_service.list_achievements()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return api_service.health()

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Memmatch API",
            "version": __version__,
            "env": settings.env,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.debug("API created (env=%s, origins=%s)", settings.env, settings.allowed_origins)
    return app

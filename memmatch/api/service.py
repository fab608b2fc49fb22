"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to session manager calls
2. Catches the board up with wall time before every read or write
3. Formats boards, summaries and stats for the client

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Errors surface as MemmatchError subclasses; the web layer maps them.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    # Requests
    CreateSessionRequest,
    PreferencesRequest,
    # Responses
    BoardResponse,
    PowerUpResponse,
    SessionListResponse,
    EndSessionResponse,
    StageInfo,
    StageListResponse,
    AchievementListResponse,
    StatsResponse,
    HealthResponse,
    # Shared
    CardInfo,
    PlayerInfo,
    AchievementInfo,
    SummaryInfo,
    PowerUpName,
)
from .. import __version__
from ..catalog import ACHIEVEMENTS, STAGES, achievement_progress, card_face, is_stage_unlocked
from ..catalog.achievements import AchievementRecord
from ..config import Settings
from ..context import AppContext
from ..engine_core import GameSummary, Player, PowerUpKind
from ..engine_core.action import result_to_dict
from ..engine_core.scoring import format_time
from ..errors import InvalidRequestError
from ..persistence.stats import DEFAULT_BEST_TIME
from ..session import BoardView, LoopUpdate, Session


def _default_context() -> AppContext:
    return AppContext(Settings.from_env()).init()


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        board = service.create_session(CreateSessionRequest(mode="ai"))
        board = service.flip(board.session_id, 3)
        stats = service.get_stats()
    """
    context: AppContext = field(default_factory=_default_context)

    @property
    def sessions(self):
        return self.context.sessions

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> BoardResponse:
        session = self.sessions.create_session(
            mode=request.mode.value,
            difficulty=request.difficulty.value,
            player_names=request.player_names,
            player_count=request.player_count,
            stage=request.stage,
            theme=request.theme,
        )
        return self._board(session, session.loop.sync())

    def get_board(self, session_id: str) -> BoardResponse:
        session = self.sessions.get_session(session_id)
        return self._board(session, session.loop.sync())

    def list_sessions(self) -> SessionListResponse:
        sessions = self.sessions.list_active_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    def end_session(self, session_id: str, reason: str = "user_ended") -> EndSessionResponse:
        success = self.sessions.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    def next_level(self, session_id: str) -> BoardResponse:
        self.sessions.get_session(session_id).loop.sync()
        session = self.sessions.next_level(session_id)
        return self._board(session, session.loop.sync())

    # =========================================================================
    # Game Loop
    # =========================================================================

    def flip(self, session_id: str, index: int) -> BoardResponse:
        session = self.sessions.get_session(session_id)
        return self._board(session, session.loop.flip(index))

    def use_power_up(self, session_id: str, kind: str) -> PowerUpResponse:
        try:
            kind = PowerUpKind(kind)
        except ValueError:
            raise InvalidRequestError(f"Unknown power-up: {kind}")

        session = self.sessions.get_session(session_id)
        update = session.loop.use_power_up(kind)
        result = update.power_up
        return PowerUpResponse(
            success=result.success,
            kind=PowerUpName(kind.value),
            remaining=result.remaining,
            reason=result.reason.value if result.reason else None,
            revealed=list(result.revealed),
            board=self._board(session, update),
        )

    # =========================================================================
    # Stats, Catalog, System
    # =========================================================================

    def get_stats(self) -> StatsResponse:
        data = self.context.reload_game_data()
        best = data.stats.best_time
        return StatsResponse(
            games_played=data.stats.games_played,
            total_score=data.stats.total_score,
            best_time=None if best >= DEFAULT_BEST_TIME else best,
            unlocked_stages=data.unlocked_stages,
            achievements=list(data.achievements),
            sound_enabled=data.preferences.sound_enabled,
            haptics_enabled=data.preferences.haptics_enabled,
        )

    def set_preferences(self, request: PreferencesRequest) -> StatsResponse:
        self.context.set_preferences(
            sound_enabled=request.sound_enabled,
            haptics_enabled=request.haptics_enabled,
        )
        return self.get_stats()

    def list_stages(self) -> StageListResponse:
        unlocked = self.context.reload_game_data().unlocked_stages
        return StageListResponse(
            stages=[
                StageInfo(
                    stage=s.stage,
                    rows=s.rows,
                    cols=s.cols,
                    pairs=s.pairs,
                    preview_time=s.preview_time,
                    difficulty=s.difficulty,
                    unlocked=is_stage_unlocked(s.stage, unlocked),
                )
                for s in STAGES
            ],
            unlocked_stages=unlocked,
        )

    def list_achievements(self) -> AchievementListResponse:
        data = self.context.reload_game_data()
        progress = achievement_progress(data.achievements)
        return AchievementListResponse(
            achievements=[
                _achievement_info(
                    a,
                    unlocked=a.id in data.achievements,
                    times=data.achievement_counts.get(a.id, 0),
                )
                for a in ACHIEVEMENTS
            ],
            **progress,
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=__version__,
            active_sessions=len(self.sessions.list_active_sessions()),
        )

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _board(self, session: Session, update: LoopUpdate) -> BoardResponse:
        view: BoardView = session.loop.view()
        board = session.metadata.get("board", {})
        return BoardResponse(
            session_id=session.session_id,
            status=session.state.value,
            mode=session.mode.value,
            phase=view.phase.value,
            loop_state=view.loop_state.value,
            level=view.level,
            rows=board.get("rows", 0),
            cols=board.get("cols", 0),
            cards=[
                CardInfo(
                    index=c.index,
                    face_up=c.face_up,
                    matched=c.matched,
                    theme=c.theme,
                    pair_id=c.pair_id,
                    face=card_face(c.theme, c.pair_id) if c.pair_id is not None else None,
                )
                for c in view.cards
            ],
            players=[
                _player_info(p, i == view.current_player_idx)
                for i, p in enumerate(view.players)
            ],
            current_player_idx=view.current_player_idx,
            power_ups=view.power_ups,
            countdown=view.countdown,
            can_flip=view.can_flip,
            streak=view.streak,
            total_moves=view.total_moves,
            events=[result_to_dict(r) for r in update.results],
            summary=_summary_info(view.summary) if view.summary else None,
        )


def _player_info(player: Player, is_current: bool = False) -> PlayerInfo:
    return PlayerInfo(
        player_id=player.player_id,
        name=player.name,
        score=player.score,
        matches=player.matches,
        combo=player.combo,
        is_ai=player.is_ai,
        difficulty=player.difficulty.value if player.difficulty else None,
        is_current_turn=is_current,
    )


def _achievement_info(record: AchievementRecord, unlocked: bool = True, times: int = 0) -> AchievementInfo:
    return AchievementInfo(
        id=record.id,
        name=record.name,
        description=record.description,
        icon=record.icon,
        unlocked=unlocked,
        times_unlocked=times,
    )


def _summary_info(summary: GameSummary) -> SummaryInfo:
    return SummaryInfo(
        players=[_player_info(p) for p in summary.players],
        total_score=summary.total_score,
        game_time=round(summary.game_time, 2),
        game_time_display=format_time(summary.game_time),
        stars=summary.stars,
        won=summary.won,
        perfect_game=summary.perfect_game,
        total_moves=summary.total_moves,
        best_streak=summary.best_streak,
        winner_ids=list(summary.winner_ids),
        new_achievements=[_achievement_info(a) for a in summary.new_achievements],
    )

"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Presentation picks a mode (and difficulty, stage or player count)
2. Manager deals a board and starts its engine (preview countdown)
3. During play the presentation flips cards through the session's GameLoop
4. On completion the summary is folded into the persisted stats
5. Endless and stage sessions can continue with next_level();
   every other session is ended and dropped

PERSISTENCE RULES:
- Boards, players and AI memory are session-scoped only
- The stats blob is the only thing written to disk
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..bots import AITurnDriver
from ..catalog.stages import endless_stage, get_mode_config, get_stage, is_stage_unlocked, MAX_STAGE
from ..catalog.themes import random_theme
from ..config import EngineTimings, PowerUpAllowance
from ..engine_core import (
    Difficulty, FlipResult, GameComplete, GameMode, GameSession, GameSummary,
    MatchEngine, Player, PowerUps, Scheduler, generate_deck,
)
from ..errors import InvalidRequestError, SessionNotFoundError, StageLockedError
from ..feedback import FeedbackChannel
from ..persistence import StatsStore, record_game
from .game_loop import GameLoop

logger = logging.getLogger(__name__)

MAX_LOCAL_PLAYERS = 4


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Board in preview or play
    LEVEL_COMPLETE = "level_complete"  # Board cleared, next_level() allowed
    GAME_OVER = "game_over"  # Finished for good
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    One sitting at the table.

    Holds the current board's engine and loop. Endless and stage sessions
    swap in a fresh engine per level; the players carry over only by name.
    """
    session_id: str
    mode: GameMode
    difficulty: Difficulty
    created_at: float
    player_names: list[str]
    ai_difficulty: Difficulty | None = None
    level: int = 1
    theme: str = "animals"

    state: SessionState = SessionState.ACTIVE
    engine: MatchEngine | None = None
    loop: GameLoop | None = None
    summaries: list[GameSummary] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def game(self) -> GameSession | None:
        return self.engine.session if self.engine else None

    def is_active(self) -> bool:
        return self.state in {SessionState.ACTIVE, SessionState.LEVEL_COMPLETE}

    @property
    def last_summary(self) -> GameSummary | None:
        return self.summaries[-1] if self.summaries else None


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Build players and boards for each mode
    - Own the shared scheduler that all engines use
    - Record completed games in the stats store
    - Cancel timers of ended sessions
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        feedback: FeedbackChannel | None = None,
        stats_store: StatsStore | None = None,
        timings: EngineTimings | None = None,
        power_ups: PowerUpAllowance | None = None,
        rng: random.Random | None = None,
    ):
        self.scheduler = scheduler or Scheduler()
        self.feedback = feedback or FeedbackChannel()
        self.stats_store = stats_store
        self.timings = timings or EngineTimings()
        self.power_ups = power_ups or PowerUpAllowance()
        self.rng = rng or random.Random()
        self.ai_driver = AITurnDriver(rng=self.rng)
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        mode: GameMode | str = GameMode.AI,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        player_names: list[str] | None = None,
        player_count: int = 2,
        stage: int = 1,
        theme: str | None = None,
    ) -> Session:
        """
        Create a session and start its first board.

        Args:
            mode: How the game is played
            difficulty: Board size, and AI tier in AI mode
            player_names: Display names, first one is the local human
            player_count: Seats in multiplayer mode (2-4)
            stage: Starting stage in stage mode (must be unlocked)
            theme: Card theme, random when omitted
        """
        try:
            mode = GameMode(mode)
        except ValueError:
            raise InvalidRequestError(f"Unknown game mode: {mode}")
        difficulty = Difficulty.parse(difficulty)

        if mode == GameMode.MULTIPLAYER and not 2 <= player_count <= MAX_LOCAL_PLAYERS:
            raise InvalidRequestError(
                f"Multiplayer needs 2-{MAX_LOCAL_PLAYERS} players, got {player_count}"
            )
        if mode == GameMode.STAGE:
            unlocked = self.stats_store.load().unlocked_stages if self.stats_store else MAX_STAGE
            if not is_stage_unlocked(stage, unlocked):
                raise StageLockedError(f"Stage {stage} is locked (unlocked: {unlocked})")

        names = list(player_names or [])
        if mode == GameMode.MULTIPLAYER:
            names = [names[i] if i < len(names) else f"Player {i + 1}" for i in range(player_count)]
        else:
            names = names[:1] or ["You"]

        session = Session(
            session_id=str(uuid.uuid4()),
            mode=mode,
            difficulty=difficulty,
            created_at=time.time(),
            player_names=names,
            ai_difficulty=difficulty if mode == GameMode.AI else None,
            level=stage if mode == GameMode.STAGE else 1,
            theme=theme or random_theme(self.rng),
        )
        self._sessions[session.session_id] = session
        self._deal(session)
        logger.info(
            "Created %s session %s (%s, level %d)",
            mode.value, session.session_id, difficulty.value, session.level,
        )
        return session

    def get_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def next_level(self, session_id: str) -> Session:
        """Deal the next board of an endless or stage session."""
        session = self.get_session(session_id)
        if session.mode not in {GameMode.ENDLESS, GameMode.STAGE}:
            raise InvalidRequestError(f"{session.mode.value} sessions have no levels")
        if session.state != SessionState.LEVEL_COMPLETE:
            raise InvalidRequestError("Current level is not complete")
        if session.mode == GameMode.STAGE and session.level >= MAX_STAGE:
            raise InvalidRequestError("No stage after the last one")

        session.level += 1
        session.state = SessionState.ACTIVE
        self._deal(session)
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        Pending timers are cancelled so no callback touches it afterwards.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.engine:
            session.engine.cancel()
        session.state = SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, s in self._sessions.items() if s.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """Drop sessions older than max_age. Returns how many were removed."""
        now = time.time()
        stale = [
            sid for sid, s in self._sessions.items()
            if now - s.created_at > max_age_seconds
        ]
        for sid in stale:
            self.end_session(sid, reason="stale")
        return len(stale)

    def shutdown(self):
        for sid in list(self._sessions):
            self.end_session(sid, reason="shutdown")

    # ------------------------------------------------------------------

    def _deal(self, session: Session):
        """Build players and deck for the session's current level and start it."""
        if session.engine:
            session.engine.cancel()

        if session.mode == GameMode.STAGE:
            board = get_stage(session.level)
        elif session.mode == GameMode.ENDLESS:
            board = endless_stage(session.level)
        else:
            board = get_mode_config(session.difficulty)

        game = GameSession(
            game_id=f"{session.session_id}:{session.level}",
            deck=generate_deck(board.pairs, session.theme, self.rng),
            players=self._seat_players(session),
            mode=session.mode,
            level=session.level,
            preview_time=board.preview_time,
            power_ups=PowerUps(
                hint=self.power_ups.hint,
                shuffle=self.power_ups.shuffle,
                extra_time=self.power_ups.extra_time,
            ),
        )
        session.metadata["board"] = {"rows": board.rows, "cols": board.cols, "pairs": board.pairs}

        engine = MatchEngine(
            game,
            self.scheduler,
            feedback=self.feedback,
            timings=self.timings,
            rng=self.rng,
            ai_driver=self.ai_driver,
        )
        engine.add_listener(lambda result: self._on_result(session, result))
        session.engine = engine
        session.loop = GameLoop(session, self.scheduler)
        engine.start()

    def _seat_players(self, session: Session) -> list[Player]:
        names = session.player_names
        players = [Player(player_id="p1", name=names[0])]
        if session.mode == GameMode.AI:
            ai_difficulty = session.ai_difficulty or Difficulty.MEDIUM
            players.append(Player(
                player_id="ai",
                name=f"AI ({ai_difficulty.value})",
                is_ai=True,
                difficulty=ai_difficulty,
            ))
        elif session.mode == GameMode.MULTIPLAYER:
            players.extend(
                Player(player_id=f"p{i + 1}", name=name)
                for i, name in enumerate(names[1:], start=1)
            )
        return players

    def _on_result(self, session: Session, result: FlipResult):
        if not isinstance(result, GameComplete):
            return
        summary = result.summary
        session.summaries.append(summary)
        continues = (
            summary.won
            and (
                session.mode == GameMode.ENDLESS
                or (session.mode == GameMode.STAGE and session.level < MAX_STAGE)
            )
        )
        session.state = SessionState.LEVEL_COMPLETE if continues else SessionState.GAME_OVER
        self._record(summary)

    def _record(self, summary: GameSummary):
        if self.stats_store is None:
            return
        data = record_game(self.stats_store.load(), summary)
        self.stats_store.save(data)

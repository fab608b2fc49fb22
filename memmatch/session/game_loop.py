"""
Game Loop - The presentation-facing driver for one session.

The loop:
1. Pumps due timers (preview ticks, resolutions, AI turns, hint expiry)
2. Forwards the human's flip or power-up to the engine
3. Collects every result emitted since the last call
4. Renders the board into a view the presentation layer can draw

With a ManualClock the loop can be advanced deterministically; with a
SystemClock it simply catches up to wall time on every call.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..engine_core import (
    FlipResult, GamePhase, GameSummary, ManualClock, Player, PowerUpKind,
    PowerUpResult, Rejected, Scheduler,
)

if TYPE_CHECKING:
    from .manager import Session


class LoopState(Enum):
    """What the table is waiting for."""
    PREVIEW = "preview"
    WAITING_HUMAN = "waiting_human"
    AI_TURN = "ai_turn"
    RESOLVING = "resolving"
    GAME_OVER = "game_over"


@dataclass
class CardView:
    """
    One card as the player may see it.

    pair_id is only filled in while the card is face-up.
    """
    index: int
    face_up: bool
    matched: bool
    theme: str
    pair_id: int | None = None


@dataclass
class BoardView:
    """Snapshot of everything the presentation layer renders."""
    session_id: str
    phase: GamePhase
    loop_state: LoopState
    cards: list[CardView]
    players: list[Player]
    current_player_idx: int
    power_ups: dict[str, int]
    countdown: int
    can_flip: bool
    level: int = 1
    streak: int = 0
    total_moves: int = 0
    summary: GameSummary | None = None


@dataclass
class LoopUpdate:
    """
    Outcome of one call into the loop.

    `results` holds every flip result emitted since the previous update,
    including AI flips and timed resolutions.
    """
    success: bool
    loop_state: LoopState
    results: list[FlipResult] = field(default_factory=list)
    power_up: PowerUpResult | None = None
    errors: list[str] = field(default_factory=list)


class GameLoop:
    """
    Usage:
        loop = session.loop
        loop.advance(5)            # ManualClock only: let preview run out
        update = loop.flip(0)
        update = loop.flip(1)
        update = loop.advance(1)   # resolution lands in update.results
        view = loop.view()
    """

    def __init__(self, session: Session, scheduler: Scheduler):
        self.session = session
        self.scheduler = scheduler
        self._seen = 0

    @property
    def engine(self):
        return self.session.engine

    @property
    def state(self) -> LoopState:
        game = self.engine.session
        if game.phase == GamePhase.PREVIEW:
            return LoopState.PREVIEW
        if game.phase == GamePhase.COMPLETE:
            return LoopState.GAME_OVER
        if not game.can_flip:
            return LoopState.RESOLVING
        if game.current_player.is_ai:
            return LoopState.AI_TURN
        return LoopState.WAITING_HUMAN

    def sync(self) -> LoopUpdate:
        """Fire every timer that is already due."""
        self.scheduler.run_due()
        return self._update()

    def advance(self, seconds: float) -> LoopUpdate:
        """Move a manual clock forward and collect what happened."""
        if not isinstance(self.scheduler.clock, ManualClock):
            return LoopUpdate(
                success=False,
                loop_state=self.state,
                errors=["advance() needs a manual clock"],
            )
        self.scheduler.advance(seconds)
        return self._update()

    def flip(self, index: int) -> LoopUpdate:
        self.scheduler.run_due()
        result = self.engine.flip(index)
        update = self._update()
        # Rejections never reach the engine history.
        if isinstance(result, Rejected):
            update.success = False
            update.results.append(result)
            update.errors.append(f"Flip {index} rejected: {result.reason.value}")
        return update

    def use_power_up(self, kind: PowerUpKind | str) -> LoopUpdate:
        self.scheduler.run_due()
        result = self.engine.use_power_up(kind)
        update = self._update()
        update.power_up = result
        update.success = result.success
        return update

    def run_to_completion(self, step: float = 0.5, max_seconds: float = 3600.0) -> LoopUpdate:
        """
        Advance a manual clock until the board is complete.

        Only terminates on its own when every seat is an AI; with humans
        seated it stops at max_seconds.
        """
        elapsed = 0.0
        results: list[FlipResult] = []
        while self.engine.session.phase != GamePhase.COMPLETE and elapsed < max_seconds:
            update = self.advance(step)
            if not update.success:
                return update
            results.extend(update.results)
            elapsed += step
        update = self._update()
        update.results = results + update.results
        return update

    def view(self) -> BoardView:
        game = self.engine.session
        cards = []
        for index, card in enumerate(game.deck):
            face_up = game.is_face_up(index)
            cards.append(CardView(
                index=index,
                face_up=face_up,
                matched=index in game.matched,
                theme=card.theme,
                pair_id=card.pair_id if face_up else None,
            ))
        return BoardView(
            session_id=self.session.session_id,
            phase=game.phase,
            loop_state=self.state,
            cards=cards,
            players=[p.snapshot() for p in game.players],
            current_player_idx=game.current_player_idx,
            power_ups=game.power_ups.as_dict(),
            countdown=game.preview_remaining,
            can_flip=game.can_flip and game.phase == GamePhase.PLAYING,
            level=game.level,
            streak=game.streak,
            total_moves=game.total_moves,
            summary=game.summary,
        )

    def _update(self) -> LoopUpdate:
        history = self.engine.history
        fresh = history[self._seen:]
        self._seen = len(history)
        return LoopUpdate(success=True, loop_state=self.state, results=list(fresh))

"""
Match Engine - The state machine for one board.

Phases: PREVIEW -> PLAYING -> COMPLETE

The engine is the single point of session mutation. Out-of-contract
requests never raise; they come back as Rejected results and leave the
session untouched. All delays are timers on the injected Scheduler, tagged
with the engine's owner key so cancel() drops every pending callback.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Callable
import logging
import random

from ..config import EngineTimings
from ..feedback import FeedbackChannel, FeedbackEvent
from .action import (
    FlipResult, Rejected, Pending, Matched, Mismatched, GameComplete,
    PowerUpResult, RejectReason,
)
from .deck import shuffle_unmatched
from .scheduler import Scheduler
from .scoring import match_points, calculate_stars
from .state import GameMode, GamePhase, GameSession, GameSummary, Player, PowerUpKind

if TYPE_CHECKING:
    from ..bots.driver import AITurnDriver

logger = logging.getLogger(__name__)

ResultListener = Callable[[FlipResult], None]


def move_limit_for(pair_count: int) -> int:
    """Moves allowed in limited-moves mode."""
    return pair_count * 2


class MatchEngine:
    """
    Drives a GameSession.

    Usage:
        engine = MatchEngine(session, scheduler)
        engine.start()                 # preview countdown begins
        scheduler.advance(preview)     # cards turn face-down, play starts
        engine.flip(0); engine.flip(3) # second flip schedules resolution
        scheduler.advance(1.0)         # Matched / Mismatched is emitted
    """

    def __init__(
        self,
        session: GameSession,
        scheduler: Scheduler,
        feedback: FeedbackChannel | None = None,
        timings: EngineTimings | None = None,
        rng: random.Random | None = None,
        ai_driver: AITurnDriver | None = None,
    ):
        self.session = session
        self.scheduler = scheduler
        self.feedback = feedback or FeedbackChannel()
        self.timings = timings or EngineTimings()
        self.rng = rng or random.Random()
        self.ai_driver = ai_driver
        self.owner = f"game:{session.game_id}"
        self.history: list[FlipResult] = []
        self._listeners: list[ResultListener] = []
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def add_listener(self, listener: ResultListener):
        self._listeners.append(listener)

    def start(self):
        """Deal face-up and start the preview countdown."""
        if self._started:
            return
        self._started = True
        s = self.session
        s.phase = GamePhase.PREVIEW
        s.started_at = self.scheduler.now()
        s.preview_remaining = max(s.preview_time, 0)
        s.flipped.clear()
        s.matched.clear()
        s.revealed.clear()
        s.can_flip = True
        logger.debug("Game %s started with %d cards", s.game_id, len(s.deck))

        if not s.deck:
            self._complete(won=True)
        elif s.preview_remaining <= 0:
            self._begin_playing()
        else:
            self.scheduler.call_later(self.timings.preview_tick, self._tick_preview, owner=self.owner)

    def cancel(self):
        """Abandon the board. Pending timers are dropped."""
        self.scheduler.cancel_owner(self.owner)
        if self.ai_driver is not None:
            self.ai_driver.release(self.owner)
        self.session.can_flip = False
        logger.debug("Game %s cancelled", self.session.game_id)

    def _tick_preview(self):
        s = self.session
        if s.phase != GamePhase.PREVIEW:
            return
        s.preview_remaining -= 1
        if s.preview_remaining <= 0:
            self._begin_playing()
        else:
            self.scheduler.call_later(self.timings.preview_tick, self._tick_preview, owner=self.owner)

    def _begin_playing(self):
        s = self.session
        s.phase = GamePhase.PLAYING
        s.preview_remaining = 0
        s.playing_since = self.scheduler.now()
        s.can_flip = True
        if s.mode == GameMode.TIME_ATTACK:
            self.scheduler.call_later(
                self.timings.time_attack_limit, self._on_time_limit, owner=self.owner
            )
        self._notify_turn()

    def _on_time_limit(self):
        if self.session.phase == GamePhase.PLAYING:
            logger.info("Game %s ran out of time", self.session.game_id)
            self._complete(won=False)

    # ------------------------------------------------------------------
    # Flips
    # ------------------------------------------------------------------

    def flip(self, index: int) -> FlipResult:
        """Human flip. Ignored while an AI is to move."""
        if self.session.phase == GamePhase.PLAYING and self.session.current_player.is_ai:
            return Rejected(RejectReason.AI_TURN, index)
        return self._flip(index)

    def ai_flip(self, index: int) -> FlipResult:
        """Flip on behalf of the AI seat whose turn it is."""
        if self.session.phase == GamePhase.PLAYING and not self.session.current_player.is_ai:
            return Rejected(RejectReason.AI_TURN, index)
        return self._flip(index)

    def _validate_flip(self, index: int) -> RejectReason | None:
        s = self.session
        if s.phase != GamePhase.PLAYING:
            return RejectReason.WRONG_PHASE
        if not s.can_flip:
            return RejectReason.RESOLVING
        if not isinstance(index, int) or index < 0 or index >= len(s.deck):
            return RejectReason.OUT_OF_RANGE
        if index in s.matched:
            return RejectReason.ALREADY_MATCHED
        if index in s.flipped:
            return RejectReason.ALREADY_FLIPPED
        return None

    def _flip(self, index: int) -> FlipResult:
        reason = self._validate_flip(index)
        if reason:
            return Rejected(reason, index)

        s = self.session
        s.flipped.append(index)
        self.feedback.signal(FeedbackEvent.FLIP)

        if len(s.flipped) < 2:
            return self._emit(Pending(index=index, player_id=s.current_player.player_id))

        first, second = s.flipped
        s.can_flip = False
        s.total_moves += 1
        s.memory.remember_pair(
            (first, s.deck[first].card_id),
            (second, s.deck[second].card_id),
        )
        self.scheduler.call_later(self.timings.resolve_delay, self._resolve, owner=self.owner)
        return self._emit(
            Pending(index=index, player_id=s.current_player.player_id, resolving=True)
        )

    def _resolve(self):
        s = self.session
        if s.phase != GamePhase.PLAYING or len(s.flipped) != 2:
            return
        first, second = s.flipped
        player = s.current_player

        if s.deck[first].pair_id == s.deck[second].pair_id:
            points = match_points(s.streak)
            player.score += points
            player.matches += 1
            player.combo += 1
            player.best_combo = max(player.best_combo, player.combo)
            s.streak += 1
            s.best_streak = max(s.best_streak, s.streak)
            s.matched.update((first, second))
            s.revealed.difference_update((first, second))
            s.flipped.clear()
            self.feedback.signal(FeedbackEvent.MATCH)
            self._emit(Matched(
                indices=(first, second),
                player_id=player.player_id,
                points=points,
                combo=player.combo,
                streak=s.streak,
            ))
            if len(s.matched) == len(s.deck):
                self._complete(won=True)
                return
        else:
            s.flipped.clear()
            s.perfect = False
            s.streak = 0
            player.combo = 0
            if s.num_players > 1:
                s.current_player_idx = (s.current_player_idx + 1) % s.num_players
            self.feedback.signal(FeedbackEvent.MISS)
            self._emit(Mismatched(
                indices=(first, second),
                player_id=player.player_id,
                next_player_idx=s.current_player_idx,
            ))

        s.can_flip = True
        if s.mode == GameMode.LIMITED_MOVES and s.total_moves >= move_limit_for(s.pair_count):
            logger.info("Game %s ran out of moves", s.game_id)
            self._complete(won=False)
            return
        self._notify_turn()

    def _notify_turn(self):
        s = self.session
        if (
            self.ai_driver is not None
            and s.phase == GamePhase.PLAYING
            and s.can_flip
            and s.current_player.is_ai
        ):
            self.ai_driver.schedule_turn(self)

    # ------------------------------------------------------------------
    # Power-ups
    # ------------------------------------------------------------------

    def use_power_up(self, kind: PowerUpKind | str) -> PowerUpResult:
        """Spend one power-up unit. Never counts as a move."""
        kind = PowerUpKind(kind)
        handlers = {
            PowerUpKind.HINT: self._hint,
            PowerUpKind.SHUFFLE: self._shuffle,
            PowerUpKind.EXTRA_TIME: self._extra_time,
        }
        s = self.session
        reason = self._validate_power_up(kind)
        if reason:
            return PowerUpResult.rejected(kind, reason, s.power_ups.remaining(kind))
        if not s.power_ups.consume(kind):
            return PowerUpResult.rejected(kind, RejectReason.NONE_LEFT, 0)

        result = handlers[kind]()
        self.feedback.signal(FeedbackEvent.POWERUP)
        result.remaining = s.power_ups.remaining(kind)
        return result

    def _validate_power_up(self, kind: PowerUpKind) -> RejectReason | None:
        s = self.session
        if kind == PowerUpKind.EXTRA_TIME:
            return None if s.phase == GamePhase.PREVIEW else RejectReason.WRONG_PHASE
        if s.phase != GamePhase.PLAYING:
            return RejectReason.WRONG_PHASE
        if s.current_player.is_ai:
            return RejectReason.AI_TURN
        if not s.can_flip:
            return RejectReason.RESOLVING
        if kind == PowerUpKind.SHUFFLE and s.flipped:
            return RejectReason.ALREADY_FLIPPED
        if kind == PowerUpKind.HINT and not self._hint_candidates():
            return RejectReason.NOTHING_TO_DO
        if s.power_ups.remaining(kind) <= 0:
            return RejectReason.NONE_LEFT
        return None

    def _hint_candidates(self) -> list[int]:
        s = self.session
        return [i for i in s.available_indices() if i not in s.revealed]

    def _hint(self) -> PowerUpResult:
        candidates = self._hint_candidates()
        chosen = self.rng.sample(candidates, min(2, len(candidates)))
        self.session.revealed.update(chosen)
        self.scheduler.call_later(
            self.timings.hint_duration, self._hide_hint, tuple(chosen), owner=self.owner
        )
        return PowerUpResult(kind=PowerUpKind.HINT, success=True, revealed=chosen)

    def _hide_hint(self, indices: tuple[int, ...]):
        self.session.revealed.difference_update(indices)

    def _shuffle(self) -> PowerUpResult:
        s = self.session
        shuffle_unmatched(s.deck, s.matched, self.rng)
        s.revealed.clear()
        # Remembered positions no longer describe the board.
        s.memory.clear()
        return PowerUpResult(
            kind=PowerUpKind.SHUFFLE,
            success=True,
            details={"shuffled": len(s.deck) - len(s.matched)},
        )

    def _extra_time(self) -> PowerUpResult:
        s = self.session
        s.preview_remaining += self.timings.extra_time_increment
        return PowerUpResult(
            kind=PowerUpKind.EXTRA_TIME,
            success=True,
            details={"preview_remaining": s.preview_remaining},
        )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _complete(self, won: bool):
        from ..catalog.achievements import evaluate

        s = self.session
        if s.phase == GamePhase.COMPLETE:
            return
        now = self.scheduler.now()
        s.phase = GamePhase.COMPLETE
        s.can_flip = False
        s.flipped.clear()
        s.revealed.clear()
        s.completed_at = now
        s.won = won
        self.scheduler.cancel_owner(self.owner)
        if self.ai_driver is not None:
            self.ai_driver.release(self.owner)

        game_time = now - (s.started_at if s.started_at is not None else now)
        summary = GameSummary(
            players=[p.snapshot() for p in s.players],
            total_score=sum(p.score for p in s.players),
            game_time=game_time,
            stars=calculate_stars(game_time, s.perfect, won),
            mode=s.mode,
            level=s.level,
            ai_difficulty=s.ai_difficulty,
            perfect_game=s.perfect,
            total_moves=s.total_moves,
            best_streak=s.best_streak,
            won=won,
            winner_ids=_top_scorers(s.players) if won else [],
        )
        summary.new_achievements = evaluate(summary)
        s.summary = summary

        self.feedback.signal(FeedbackEvent.WIN if won else FeedbackEvent.LOSE)
        logger.info(
            "Game %s complete: won=%s score=%d time=%.1fs stars=%d",
            s.game_id, won, summary.total_score, game_time, summary.stars,
        )
        self._emit(GameComplete(summary=summary))

    def _emit(self, result: FlipResult) -> FlipResult:
        self.history.append(result)
        for listener in list(self._listeners):
            listener(result)
        return result


def _top_scorers(players: list[Player]) -> list[str]:
    if not players:
        return []
    best = max(p.score for p in players)
    return [p.player_id for p in players if p.score == best]

"""
AI Turn Driver - Plays AI seats through the engine's scheduler.

An AI turn is two separate flips, not one double-flip, so sound, haptics
and the board view behave exactly as for a human:

    think delay -> flip first card -> short pause -> flip second card

The engine calls schedule_turn() whenever an AI seat is to move and the
can-flip gate is open. Every timer is tagged with the engine's owner key,
so cancelling the game also cancels a half-played AI turn.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging
import random

from ..engine_core.state import Difficulty, GamePhase
from .difficulty import get_profile
from .policy import MovePolicy, create_policy

if TYPE_CHECKING:
    from ..engine_core.engine import MatchEngine

logger = logging.getLogger(__name__)


def ai_think_delay(ai_score: int, opponent_score: int, difficulty: Difficulty | str | None) -> float:
    """
    Seconds the AI waits before moving.

    The AI slows down when it is well ahead so a struggling human keeps up.
    """
    lead = ai_score - opponent_score
    multiplier = 1.0
    if lead > 20:
        multiplier = 1.5
    elif lead > 10:
        multiplier = 1.2
    return get_profile(difficulty).base_delay * multiplier


class AITurnDriver:
    """
    Schedules and executes AI turns.

    Policies are created lazily, one per difficulty, sharing the driver's rng.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._policies: dict[Difficulty, MovePolicy] = {}
        self._scheduled: set[str] = set()

    def policy_for(self, difficulty: Difficulty | None) -> MovePolicy:
        difficulty = Difficulty.parse(difficulty)
        if difficulty not in self._policies:
            self._policies[difficulty] = create_policy(difficulty, self.rng)
        return self._policies[difficulty]

    def schedule_turn(self, engine: MatchEngine):
        """Queue the current AI seat's turn after its think delay."""
        if engine.owner in self._scheduled:
            return
        session = engine.session
        ai = session.current_player
        opponents = [p.score for p in session.players if p is not ai]
        delay = ai_think_delay(ai.score, max(opponents, default=0), ai.difficulty)
        self._scheduled.add(engine.owner)
        engine.scheduler.call_later(delay, self._take_turn, engine, owner=engine.owner)

    def _take_turn(self, engine: MatchEngine):
        self._scheduled.discard(engine.owner)
        session = engine.session
        if (
            session.phase != GamePhase.PLAYING
            or not session.can_flip
            or session.flipped
            or not session.current_player.is_ai
        ):
            return

        ai = session.current_player
        decision = self.policy_for(ai.difficulty).select_move(
            session.deck, session.flipped, session.matched, session.memory
        )
        if len(decision.indices) < 2:
            return
        logger.debug("%s plays %s (%s)", ai.name, decision.indices, decision.reason)

        first, second = decision.indices[:2]
        engine.ai_flip(first)
        engine.scheduler.call_later(
            engine.timings.ai_second_flip_delay, engine.ai_flip, second, owner=engine.owner
        )

    def release(self, owner: str):
        """Forget a pending turn whose timers were cancelled."""
        self._scheduled.discard(owner)

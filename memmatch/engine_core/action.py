"""
Results - Typed outcomes of flips and power-ups.

Each outcome is its own dataclass instead of a loosely shaped dict, so the
presentation layer can dispatch on type (or on `.outcome`):

- Rejected:     the request was out of contract and changed nothing
- Pending:      a card was turned; a pair is either incomplete or resolving
- Matched:      the resolved pair matched, same player continues
- Mismatched:   the resolved pair did not match, turn may have advanced
- GameComplete: the last pair matched (or a mode limit ended the game)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .state import GameSummary, PowerUpKind


class FlipOutcome(Enum):
    """Discriminator shared by all flip results."""
    REJECTED = "rejected"
    PENDING = "pending"
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    GAME_COMPLETE = "game_complete"


class RejectReason(Enum):
    """Why a request was ignored."""
    WRONG_PHASE = "wrong_phase"
    RESOLVING = "resolving"
    OUT_OF_RANGE = "out_of_range"
    ALREADY_FLIPPED = "already_flipped"
    ALREADY_MATCHED = "already_matched"
    AI_TURN = "ai_turn"
    NONE_LEFT = "none_left"
    NOTHING_TO_DO = "nothing_to_do"


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    index: int | None = None

    @property
    def outcome(self) -> FlipOutcome:
        return FlipOutcome.REJECTED


@dataclass(frozen=True)
class Pending:
    """
    A card was turned face-up.

    `resolving` is True once the second card of a pair is up and the
    resolution timer is running.
    """
    index: int
    player_id: str
    resolving: bool = False

    @property
    def outcome(self) -> FlipOutcome:
        return FlipOutcome.PENDING


@dataclass(frozen=True)
class Matched:
    indices: tuple[int, int]
    player_id: str
    points: int
    combo: int
    streak: int

    @property
    def outcome(self) -> FlipOutcome:
        return FlipOutcome.MATCHED


@dataclass(frozen=True)
class Mismatched:
    indices: tuple[int, int]
    player_id: str
    next_player_idx: int

    @property
    def outcome(self) -> FlipOutcome:
        return FlipOutcome.MISMATCHED


@dataclass(frozen=True)
class GameComplete:
    summary: GameSummary

    @property
    def outcome(self) -> FlipOutcome:
        return FlipOutcome.GAME_COMPLETE


FlipResult = Union[Rejected, Pending, Matched, Mismatched, GameComplete]


@dataclass
class PowerUpResult:
    """Result of using a power-up."""
    kind: PowerUpKind
    success: bool
    remaining: int = 0
    reason: RejectReason | None = None
    revealed: list[int] = field(default_factory=list)  # hint only
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def rejected(cls, kind: PowerUpKind, reason: RejectReason, remaining: int = 0) -> PowerUpResult:
        return cls(kind=kind, success=False, remaining=remaining, reason=reason)


def result_to_dict(result: FlipResult) -> dict[str, Any]:
    """Flatten a flip result for logging and JSON responses."""
    data: dict[str, Any] = {"outcome": result.outcome.value}
    if isinstance(result, Rejected):
        data.update(reason=result.reason.value, index=result.index)
    elif isinstance(result, Pending):
        data.update(index=result.index, player_id=result.player_id, resolving=result.resolving)
    elif isinstance(result, Matched):
        data.update(
            indices=list(result.indices),
            player_id=result.player_id,
            points=result.points,
            combo=result.combo,
            streak=result.streak,
        )
    elif isinstance(result, Mismatched):
        data.update(
            indices=list(result.indices),
            player_id=result.player_id,
            next_player_idx=result.next_player_idx,
        )
    elif isinstance(result, GameComplete):
        data.update(
            total_score=result.summary.total_score,
            stars=result.summary.stars,
            won=result.summary.won,
        )
    return data

"""
Move Policy - How an AI seat picks its two cards.

A MovePolicy looks at the board and the shared memory buffer and returns
a MoveDecision of zero or two indices. Policies never see face-down cards
they have not observed; the only knowledge they have is the memory buffer.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable
import random

from ..engine_core.memory import AIMemoryEntry
from ..engine_core.state import Card, Difficulty
from .difficulty import DifficultyProfile, EASY, MEDIUM, HARD


@dataclass
class MoveDecision:
    """
    A move chosen by a policy.

    `reason` is for logs and debugging only.
    """
    indices: list[int]
    reason: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.indices


def available_indices(
    deck: list[Card],
    flipped: Iterable[int],
    matched: Iterable[int],
) -> list[int]:
    taken = set(flipped) | set(matched)
    return [i for i in range(len(deck)) if i not in taken]


class MovePolicy(ABC):
    """
    Abstract base class for AI tiers.

    Subclasses implement _informed_move(); the shared select_move() handles
    the "not enough cards" case and the tier's random-move rate.
    """

    profile: DifficultyProfile = EASY

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def select_move(
        self,
        deck: list[Card],
        flipped: Iterable[int],
        matched: Iterable[int],
        memory: Iterable[AIMemoryEntry],
    ) -> MoveDecision:
        """
        Pick two available indices.

        Returns an empty decision when fewer than two cards are available.
        """
        available = available_indices(deck, flipped, matched)
        if len(available) < 2:
            return MoveDecision(indices=[], reason="Not enough cards left")

        if self.rng.random() < self.profile.random_rate:
            return self._random_move(available, "Random pick")

        return self._informed_move(available, list(memory))

    @abstractmethod
    def _informed_move(
        self,
        available: list[int],
        memory: list[AIMemoryEntry],
    ) -> MoveDecision:
        pass

    def _random_move(self, available: list[int], reason: str = "Random fallback") -> MoveDecision:
        return MoveDecision(indices=self.rng.sample(available, 2), reason=reason)

    def get_name(self) -> str:
        return self.profile.name


class EasyPolicy(MovePolicy):
    """Always random."""

    profile = EASY

    def _informed_move(self, available, memory):
        return self._random_move(available)


class MediumPolicy(MovePolicy):
    """
    Short memory.

    Only the last few observations are consulted. A remembered pair is
    taken; otherwise one remembered card is paired with an unseen one.
    """

    profile = MEDIUM

    def _informed_move(self, available, memory):
        window = memory[-self.profile.memory_window:] if self.profile.memory_window else []
        known: list[int] = []
        groups: dict[int, list[int]] = {}
        for entry in window:
            if entry.index not in available or entry.index in known:
                continue
            known.append(entry.index)
            groups.setdefault(entry.card_id, []).append(entry.index)

        for indices in groups.values():
            if len(indices) >= 2:
                return MoveDecision(indices=indices[:2], reason="Remembered pair")

        if known:
            unknown = [i for i in available if i not in known]
            if unknown:
                return MoveDecision(
                    indices=[self.rng.choice(known), self.rng.choice(unknown)],
                    reason="Known card with a guess",
                )

        return self._random_move(available)


class HardPolicy(MovePolicy):
    """
    Full memory, bounded only by the buffer capacity.

    Takes any remembered pair, otherwise explores two unseen cards to
    gain information, otherwise mixes a known card with an unseen one.
    """

    profile = HARD

    def _informed_move(self, available, memory):
        remembered: dict[int, int] = {}
        for entry in memory[-self.profile.memory_window:]:
            if entry.index in available:
                remembered[entry.index] = entry.card_id

        positions: dict[int, list[int]] = {}
        for index, card_id in remembered.items():
            positions.setdefault(card_id, []).append(index)
        for indices in positions.values():
            if len(indices) >= 2:
                return MoveDecision(indices=indices[:2], reason="Remembered pair")

        known = list(remembered)
        unknown = [i for i in available if i not in remembered]
        if len(unknown) >= 2:
            return MoveDecision(indices=unknown[:2], reason="Exploring unseen cards")
        if known and unknown:
            return MoveDecision(
                indices=[self.rng.choice(known), self.rng.choice(unknown)],
                reason="Known card with the last unseen one",
            )

        return self._random_move(available)


POLICIES: dict[Difficulty, type[MovePolicy]] = {
    Difficulty.EASY: EasyPolicy,
    Difficulty.MEDIUM: MediumPolicy,
    Difficulty.HARD: HardPolicy,
}


def create_policy(difficulty: Difficulty | str | None, rng: random.Random | None = None) -> MovePolicy:
    """Policy for a tier; unknown names play as medium."""
    return POLICIES[Difficulty.parse(difficulty)](rng=rng)


def choose_move(
    deck: list[Card],
    flipped: Iterable[int],
    matched: Iterable[int],
    memory: Iterable[AIMemoryEntry],
    difficulty: Difficulty | str | None,
    rng: random.Random | None = None,
) -> list[int]:
    """Indices the AI would flip: [] when fewer than two cards remain."""
    policy = create_policy(difficulty, rng)
    return policy.select_move(deck, flipped, matched, memory).indices


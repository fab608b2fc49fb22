"""
AI Memory - Bounded buffer of cards seen face-up.

Every resolved flip pair, human or AI, is appended here. The buffer keeps
only the most recent MEMORY_CAPACITY entries, so a pair flipped long enough
ago is forgotten even by the hard AI.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Iterator

MEMORY_CAPACITY = 20


@dataclass(frozen=True)
class AIMemoryEntry:
    """One observed card: where it was and what it showed."""
    index: int
    card_id: int


class AIMemory:
    """
    FIFO memory shared by every AI seat of a session.

    Oldest entries are evicted first once capacity is reached.
    """

    def __init__(self, capacity: int = MEMORY_CAPACITY):
        self.capacity = capacity
        self._entries: deque[AIMemoryEntry] = deque(maxlen=capacity)

    def remember(self, index: int, card_id: int):
        self._entries.append(AIMemoryEntry(index=index, card_id=card_id))

    def remember_pair(self, first: tuple[int, int], second: tuple[int, int]):
        """Record both cards of a flip pair as (index, card_id) tuples."""
        self.remember(*first)
        self.remember(*second)

    def recent(self, count: int) -> list[AIMemoryEntry]:
        """The last `count` entries, oldest first."""
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def entries(self) -> list[AIMemoryEntry]:
        return list(self._entries)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AIMemoryEntry]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"AIMemory({len(self)}/{self.capacity})"

"""
Deck Generator - Builds and shuffles the paired deck.
"""

from __future__ import annotations
import random
from typing import Iterable

from .state import Card


def fisher_yates(items: list, rng: random.Random | None = None) -> list:
    """Shuffle a list in place with Fisher-Yates and return it."""
    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def generate_deck(
    pair_count: int,
    theme: str = "animals",
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Create `pair_count` pairs tagged with `theme`, uniformly shuffled.

    A non-positive pair_count yields an empty deck.
    """
    cards: list[Card] = []
    for pair_id in range(max(pair_count, 0)):
        cards.append(Card(card_id=pair_id, pair_id=pair_id, theme=theme))
        cards.append(Card(card_id=pair_id, pair_id=pair_id, theme=theme))
    return fisher_yates(cards, rng)


def shuffle_unmatched(
    deck: list[Card],
    matched: Iterable[int],
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Permute the cards at unmatched positions in place.

    Matched cards keep their position. Returns the same list.
    """
    matched = set(matched)
    positions = [i for i in range(len(deck)) if i not in matched]
    cards = fisher_yates([deck[i] for i in positions], rng)
    for position, card in zip(positions, cards):
        deck[position] = card
    return deck


def is_valid_deck(deck: list[Card]) -> bool:
    """Every pair id in [0, len/2) appears exactly twice."""
    if len(deck) % 2:
        return False
    counts: dict[int, int] = {}
    for card in deck:
        counts[card.pair_id] = counts.get(card.pair_id, 0) + 1
    return sorted(counts) == list(range(len(deck) // 2)) and all(c == 2 for c in counts.values())

"""
Pytest fixtures for Memmatch tests.
"""

import random

import pytest

from ..config import EngineTimings
from ..engine_core import (
    Card, GameMode, GameSession, ManualClock, MatchEngine, Player, Scheduler,
)
from ..feedback import FeedbackChannel
from ..persistence import StatsStore


class RecordingPlayer:
    """Feedback player that remembers what it was asked to do."""

    def __init__(self):
        self.sounds = []
        self.vibrations = []

    def play(self, event, tone):
        self.sounds.append(event)

    def vibrate(self, intensity, duration_ms):
        self.vibrations.append((intensity, duration_ms))


def make_deck(layout, theme="animals"):
    """Deck from a list of pair ids, e.g. [0, 1, 0, 1]."""
    return [Card(card_id=p, pair_id=p, theme=theme) for p in layout]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock) -> Scheduler:
    return Scheduler(clock)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def recorder() -> RecordingPlayer:
    return RecordingPlayer()


@pytest.fixture
def feedback(recorder) -> FeedbackChannel:
    return FeedbackChannel(recorder)


@pytest.fixture
def timings() -> EngineTimings:
    return EngineTimings()


@pytest.fixture
def human() -> Player:
    return Player(player_id="p1", name="You")


@pytest.fixture
def make_engine(scheduler, feedback, timings, rng):
    """
    Factory for an engine over a fixed layout.

    Defaults to a single human with no preview, so play starts at once.
    """
    def _make(layout=(0, 1, 0, 1), players=None, mode=GameMode.AI, preview_time=0, ai_driver=None, start=True):
        game = GameSession(
            game_id="test",
            deck=make_deck(layout),
            players=players or [Player(player_id="p1", name="You")],
            mode=mode,
            preview_time=preview_time,
        )
        engine = MatchEngine(
            game, scheduler, feedback=feedback, timings=timings, rng=rng, ai_driver=ai_driver
        )
        if start:
            engine.start()
        return engine
    return _make


@pytest.fixture
def stats_store(tmp_path) -> StatsStore:
    return StatsStore(tmp_path / "data.json")

"""
Tests for AI move selection and the turn driver.

Tests:
- Policies only pick available cards
- Memory use per tier
- Memory buffer capacity
- Think delay pacing
- Driver plays a full AI turn through the scheduler
"""

import random

import pytest

from ..bots import (
    AITurnDriver, EasyPolicy, HardPolicy, MediumPolicy, PROFILES, ai_think_delay,
    choose_move, create_policy, get_profile,
)
from ..engine_core import (
    AIMemory, Difficulty, GamePhase, Matched, MEMORY_CAPACITY, Pending, Player,
)
from ..engine_core.memory import AIMemoryEntry
from .conftest import make_deck


class NeverRandom(random.Random):
    """rng whose random() never triggers a tier's random-move roll."""

    def random(self):
        return 0.99


def memory_of(*pairs):
    memory = AIMemory()
    for index, card_id in pairs:
        memory.remember(index, card_id)
    return memory


class TestAIMemory:
    """Tests for the bounded memory buffer."""

    def test_capacity_is_twenty(self):
        assert MEMORY_CAPACITY == 20

    def test_oldest_entries_evicted(self):
        memory = AIMemory()
        for i in range(25):
            memory.remember(i, i % 5)

        assert len(memory) == 20
        assert memory.entries()[0] == AIMemoryEntry(index=5, card_id=0)
        assert memory.entries()[-1].index == 24

    def test_recent(self):
        memory = memory_of((0, 0), (1, 1), (2, 2))
        assert [e.index for e in memory.recent(2)] == [1, 2]
        assert memory.recent(0) == []

    def test_clear(self):
        memory = memory_of((0, 0))
        memory.clear()
        assert len(memory) == 0


class TestPolicyLegality:
    """Every tier only picks distinct, available cards."""

    @pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
    def test_picks_available_cards(self, difficulty):
        deck = make_deck([0, 1, 2, 3, 0, 1, 2, 3])
        matched = {0, 4}
        memory = memory_of((1, 1), (2, 2), (0, 0))
        rng = random.Random(8)

        for _ in range(50):
            move = choose_move(deck, [], matched, memory, difficulty, rng)
            assert len(move) == 2
            assert move[0] != move[1]
            assert not set(move) & matched

    @pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
    def test_empty_when_fewer_than_two_available(self, difficulty):
        deck = make_deck([0, 1, 0, 1])
        assert choose_move(deck, [], {0, 1, 2, 3}, AIMemory(), difficulty) == []
        assert choose_move(deck, [3], {0, 1, 2}, AIMemory(), difficulty) == []

    def test_unknown_difficulty_plays_medium(self):
        assert isinstance(create_policy("impossible"), MediumPolicy)


class TestMediumPolicy:

    def test_takes_remembered_pair(self):
        deck = make_deck([0, 1, 2, 0, 1, 2])
        memory = memory_of((0, 0), (1, 1), (3, 0))
        policy = MediumPolicy(rng=NeverRandom(1))

        decision = policy.select_move(deck, [], set(), memory)

        assert sorted(decision.indices) == [0, 3]

    def test_only_recent_window_is_consulted(self):
        """The 0/5 pair is older than the last six observations."""
        deck = make_deck([0, 1, 2, 3, 4, 0, 1, 2, 3, 4])
        memory = memory_of((0, 0), (5, 0), (1, 1), (2, 2), (3, 3), (4, 4), (6, 1), (7, 2))
        policy = MediumPolicy(rng=NeverRandom(1))

        decision = policy.select_move(deck, [], set(), memory)

        assert sorted(decision.indices) == [1, 6]

    def test_old_pair_alone_is_forgotten(self):
        deck = make_deck([0, 1, 2, 3, 4, 0, 1, 2, 3, 4])
        memory = memory_of((0, 0), (5, 0), (1, 1), (1, 1), (2, 2), (2, 2), (3, 3), (4, 4))

        decision = MediumPolicy(rng=NeverRandom(1)).select_move(deck, [], set(), memory)

        assert decision.reason == "Known card with a guess"
        assert decision.indices[0] in {1, 2, 3, 4}

    def test_duplicate_observations_are_not_a_pair(self):
        deck = make_deck([0, 1, 0, 1])
        memory = memory_of((0, 0), (0, 0))
        policy = MediumPolicy(rng=NeverRandom(1))

        decision = policy.select_move(deck, [], set(), memory)

        assert decision.indices[0] != decision.indices[1]


class TestHardPolicy:
    """Tests for the full-memory tier."""

    def test_takes_remembered_pair(self):
        deck = make_deck([0, 1, 2, 3, 0, 1, 2, 3])
        memory = memory_of((1, 1), (6, 2), (0, 0), (2, 2))
        policy = HardPolicy(rng=NeverRandom(2))

        decision = policy.select_move(deck, [], set(), memory)

        assert sorted(decision.indices) == [2, 6]
        assert decision.reason == "Remembered pair"

    def test_remembers_old_pair_within_capacity(self):
        """Unlike medium, hard still sees a pair twenty observations back."""
        layout = list(range(10)) * 2
        deck = make_deck(layout)
        memory = AIMemory()
        memory.remember(0, 0)
        memory.remember(10, 0)
        for i in range(1, 10):
            memory.remember(i, i)
            memory.remember(i, i)

        decision = HardPolicy(rng=NeverRandom(0)).select_move(deck, [], set(), memory)

        assert sorted(decision.indices) == [0, 10]

    def test_explores_unseen_cards(self):
        deck = make_deck([0, 1, 2, 0, 1, 2])
        memory = memory_of((0, 0), (1, 1))

        decision = HardPolicy(rng=NeverRandom(0)).select_move(deck, [], set(), memory)

        assert decision.indices == [2, 3]

    def test_ignores_matched_memory(self):
        deck = make_deck([0, 1, 0, 1])
        memory = memory_of((0, 0), (2, 0))

        decision = HardPolicy(rng=NeverRandom(0)).select_move(deck, [], {0, 2}, memory)

        assert sorted(decision.indices) == [1, 3]

    def test_easy_is_always_random(self):
        assert EasyPolicy.profile.random_rate == 1.0
        assert get_profile("easy").memory_window == 0


class TestThinkDelay:

    def test_base_delays(self):
        assert ai_think_delay(0, 0, "easy") == pytest.approx(2.0)
        assert ai_think_delay(0, 0, "medium") == pytest.approx(1.5)
        assert ai_think_delay(0, 0, "hard") == pytest.approx(1.0)

    def test_slows_down_when_far_ahead(self):
        assert ai_think_delay(25, 10, "hard") == pytest.approx(1.2)
        assert ai_think_delay(40, 10, "hard") == pytest.approx(1.5)
        assert ai_think_delay(20, 10, "hard") == pytest.approx(1.0)

    def test_profiles_cover_every_tier(self):
        assert set(PROFILES) == set(Difficulty)


class TestAITurnDriver:
    """The driver plays two separate flips through the scheduler."""

    def ai_table(self, difficulty=Difficulty.HARD):
        return [
            Player(player_id="ai", name="AI", is_ai=True, difficulty=difficulty),
            Player(player_id="p1", name="You"),
        ]

    def test_ai_turn_is_two_timed_flips(self, make_engine, scheduler, rng):
        driver = AITurnDriver(rng=rng)
        engine = make_engine(players=self.ai_table(), ai_driver=driver)

        assert engine.history == []
        scheduler.advance(1.0)  # think delay
        assert [type(r) for r in engine.history] == [Pending]
        scheduler.advance(0.8)  # second flip
        assert [type(r) for r in engine.history] == [Pending, Pending]
        assert engine.history[-1].resolving

    def test_ai_keeps_turn_after_match(self, make_engine, scheduler):
        driver = AITurnDriver(rng=NeverRandom(0))
        engine = make_engine(layout=(0, 1, 0, 1), players=self.ai_table(), ai_driver=driver)
        engine.session.memory.remember(0, 0)
        engine.session.memory.remember(2, 0)

        scheduler.advance(1.0 + 0.8 + 1.0)

        assert isinstance(engine.history[2], Matched)
        assert engine.history[2].player_id == "ai"
        assert engine.session.current_player.player_id == "ai"

    def test_all_ai_game_completes(self, make_engine, scheduler, rng):
        players = [
            Player(player_id="a", name="A", is_ai=True, difficulty=Difficulty.MEDIUM),
            Player(player_id="b", name="B", is_ai=True, difficulty=Difficulty.HARD),
        ]
        engine = make_engine(layout=(0, 1, 2, 3, 0, 1, 2, 3), players=players, ai_driver=AITurnDriver(rng=rng))

        scheduler.run_until_idle(engine.owner)

        game = engine.session
        assert game.phase == GamePhase.COMPLETE
        assert len(game.matched) == 8
        assert sum(p.matches for p in game.players) == 4

    def test_cancel_stops_half_played_turn(self, make_engine, scheduler, rng):
        engine = make_engine(players=self.ai_table(), ai_driver=AITurnDriver(rng=rng))
        scheduler.advance(1.0)
        engine.cancel()
        scheduler.advance(10)

        assert len(engine.history) == 1
        assert scheduler.pending(engine.owner) == 0

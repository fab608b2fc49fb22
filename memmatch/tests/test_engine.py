"""
Tests for the match engine state machine.

Tests:
- Preview countdown and the can-flip gate
- Match/mismatch resolution, scoring and streaks
- Turn rotation
- Power-ups
- Mode limits and completion
"""

import pytest

from ..bots import AITurnDriver
from ..engine_core import (
    Difficulty, GameComplete, GameMode, GamePhase, Matched, Mismatched, Pending, Player,
    PowerUpKind, Rejected, RejectReason,
)
from ..engine_core.engine import _top_scorers, move_limit_for
from ..engine_core.scoring import calculate_stars, format_time, match_points
from ..feedback import FeedbackEvent


def two_humans():
    return [Player(player_id="p1", name="Ann"), Player(player_id="p2", name="Bo")]


def play_pair(engine, scheduler, first, second):
    """Flip two cards and let the resolution land."""
    engine.flip(first)
    engine.flip(second)
    scheduler.advance(engine.timings.resolve_delay)


class TestScoring:
    """Tests for points and star rating."""

    def test_streak_bonus(self):
        assert match_points(0) == 10
        assert match_points(1) == 12
        assert match_points(4) == 18

    def test_stars(self):
        assert calculate_stars(20, perfect=True) == 3
        assert calculate_stars(45, perfect=True) == 2
        assert calculate_stars(45, perfect=False) == 2
        assert calculate_stars(90, perfect=False) == 1
        assert calculate_stars(5, perfect=True, won=False) == 1

    def test_format_time(self):
        assert format_time(75.4) == "1:15"
        assert format_time(-3) == "0:00"


class TestPreview:
    """Tests for the preview countdown."""

    def test_cards_face_up_during_preview(self, make_engine):
        engine = make_engine(preview_time=3)
        game = engine.session

        assert game.phase == GamePhase.PREVIEW
        assert game.preview_remaining == 3
        assert all(game.is_face_up(i) for i in range(len(game.deck)))

    def test_countdown_then_play(self, make_engine, scheduler):
        engine = make_engine(preview_time=3)
        game = engine.session

        scheduler.advance(1)
        assert game.preview_remaining == 2
        scheduler.advance(2)

        assert game.phase == GamePhase.PLAYING
        assert not any(game.is_face_up(i) for i in range(len(game.deck)))

    def test_flip_rejected_in_preview(self, make_engine):
        engine = make_engine(preview_time=3)

        result = engine.flip(0)

        assert isinstance(result, Rejected)
        assert result.reason == RejectReason.WRONG_PHASE
        assert engine.session.flipped == []

    def test_zero_preview_starts_play(self, make_engine):
        engine = make_engine(preview_time=0)
        assert engine.session.phase == GamePhase.PLAYING

    def test_start_is_idempotent(self, make_engine, scheduler):
        engine = make_engine(preview_time=2)
        engine.start()
        assert scheduler.pending(engine.owner) == 1


class TestFlipValidation:
    """Out-of-contract flips are rejected without changing state."""

    def test_out_of_range(self, make_engine):
        engine = make_engine()
        assert engine.flip(99).reason == RejectReason.OUT_OF_RANGE
        assert engine.flip(-1).reason == RejectReason.OUT_OF_RANGE

    def test_same_card_twice(self, make_engine):
        engine = make_engine()
        engine.flip(0)

        result = engine.flip(0)

        assert result.reason == RejectReason.ALREADY_FLIPPED
        assert engine.session.flipped == [0]

    def test_third_flip_while_resolving(self, make_engine):
        """The gate closes after the second card."""
        engine = make_engine(layout=(0, 1, 2, 0, 1, 2))
        engine.flip(0)
        second = engine.flip(1)

        assert isinstance(second, Pending) and second.resolving
        assert not engine.session.can_flip
        assert engine.flip(2).reason == RejectReason.RESOLVING
        assert engine.session.flipped == [0, 1]

    def test_matched_card(self, make_engine, scheduler):
        engine = make_engine()
        play_pair(engine, scheduler, 0, 2)

        assert engine.flip(0).reason == RejectReason.ALREADY_MATCHED

    def test_rejections_are_not_recorded(self, make_engine):
        engine = make_engine()
        engine.flip(42)
        assert engine.history == []


class TestResolution:
    """Tests for match and mismatch handling."""

    def test_worked_example(self, make_engine, scheduler):
        """Two pairs in a row: 10 then 12 points, combo 2, game complete."""
        engine = make_engine(layout=(0, 1, 0, 1))
        game = engine.session

        play_pair(engine, scheduler, 0, 2)
        first = engine.history[-1]
        assert isinstance(first, Matched)
        assert first.points == 10
        assert game.players[0].score == 10

        play_pair(engine, scheduler, 1, 3)

        matches = [r for r in engine.history if isinstance(r, Matched)]
        assert [m.points for m in matches] == [10, 12]
        assert game.players[0].score == 22
        assert game.players[0].combo == 2
        assert game.phase == GamePhase.COMPLETE

        summary = game.summary
        assert summary.total_score == 22
        assert summary.stars >= 2
        assert summary.perfect_game
        assert summary.won
        assert summary.total_moves == 2

    def test_resolution_waits_for_delay(self, make_engine, scheduler):
        engine = make_engine()
        engine.flip(0)
        engine.flip(2)

        scheduler.advance(0.5)
        assert engine.session.matched == set()

        scheduler.advance(0.5)
        assert engine.session.matched == {0, 2}
        assert engine.session.can_flip

    def test_mismatch_resets_streak_and_perfect(self, make_engine, scheduler):
        engine = make_engine(layout=(0, 1, 2, 0, 1, 2))
        game = engine.session

        play_pair(engine, scheduler, 0, 3)
        assert game.streak == 1

        play_pair(engine, scheduler, 1, 2)

        assert isinstance(engine.history[-1], Mismatched)
        assert game.streak == 0
        assert game.players[0].combo == 0
        assert not game.perfect
        assert game.flipped == []
        assert game.best_streak == 1

    def test_mismatch_passes_turn(self, make_engine, scheduler):
        engine = make_engine(players=two_humans(), mode=GameMode.MULTIPLAYER)

        play_pair(engine, scheduler, 0, 1)

        result = engine.history[-1]
        assert isinstance(result, Mismatched)
        assert result.player_id == "p1"
        assert result.next_player_idx == 1
        assert engine.session.current_player.player_id == "p2"

    def test_turn_wraps_around(self, make_engine, scheduler):
        engine = make_engine(players=two_humans(), mode=GameMode.MULTIPLAYER)
        play_pair(engine, scheduler, 0, 1)
        play_pair(engine, scheduler, 0, 1)
        assert engine.session.current_player_idx == 0

    def test_match_keeps_turn(self, make_engine, scheduler):
        engine = make_engine(
            layout=(0, 1, 2, 0, 1, 2), players=two_humans(), mode=GameMode.MULTIPLAYER
        )
        play_pair(engine, scheduler, 0, 3)
        assert engine.session.current_player_idx == 0
        assert engine.session.players[0].matches == 1

    def test_streak_is_shared_across_players(self, make_engine, scheduler):
        """A match by the next player after a mismatch starts from zero."""
        engine = make_engine(
            layout=(0, 1, 2, 0, 1, 2), players=two_humans(), mode=GameMode.MULTIPLAYER
        )
        play_pair(engine, scheduler, 0, 3)  # p1 +10
        play_pair(engine, scheduler, 1, 2)  # p1 miss, p2 to move
        play_pair(engine, scheduler, 1, 4)  # p2 +10

        p1, p2 = engine.session.players
        assert (p1.score, p2.score) == (10, 10)

    def test_flip_pair_is_remembered(self, make_engine, scheduler):
        engine = make_engine(layout=(0, 1, 0, 1))
        engine.flip(0)
        engine.flip(1)

        entries = engine.session.memory.entries()
        assert [(e.index, e.card_id) for e in entries] == [(0, 0), (1, 1)]

    def test_feedback_events(self, make_engine, scheduler, recorder):
        engine = make_engine(layout=(0, 1, 2, 0, 1, 2))
        play_pair(engine, scheduler, 0, 3)
        play_pair(engine, scheduler, 1, 2)

        assert recorder.sounds == [
            FeedbackEvent.FLIP, FeedbackEvent.FLIP, FeedbackEvent.MATCH,
            FeedbackEvent.FLIP, FeedbackEvent.FLIP, FeedbackEvent.MISS,
        ]


class TestAITurnGuard:

    def test_human_cannot_flip_for_ai(self, make_engine, scheduler):
        players = [Player(player_id="p1", name="You"), Player(player_id="ai", name="AI", is_ai=True)]
        engine = make_engine(players=players)
        play_pair(engine, scheduler, 0, 1)  # miss, AI to move

        assert engine.flip(2).reason == RejectReason.AI_TURN

    def test_ai_cannot_flip_for_human(self, make_engine):
        players = [Player(player_id="p1", name="You"), Player(player_id="ai", name="AI", is_ai=True)]
        engine = make_engine(players=players)

        assert engine.ai_flip(0).reason == RejectReason.AI_TURN


class TestPowerUps:
    """Tests for hint, shuffle and extra time."""

    def test_hint_reveals_two_cards_briefly(self, make_engine, scheduler):
        engine = make_engine()
        game = engine.session

        result = engine.use_power_up(PowerUpKind.HINT)

        assert result.success
        assert len(result.revealed) == 2
        assert result.remaining == 2
        assert all(game.is_face_up(i) for i in result.revealed)
        assert game.total_moves == 0

        scheduler.advance(1.5)
        assert game.revealed == set()

    def test_hint_accepts_string_kind(self, make_engine):
        engine = make_engine()
        assert engine.use_power_up("hint").success

    def test_hint_rejected_while_resolving(self, make_engine):
        engine = make_engine()
        engine.flip(0)
        engine.flip(1)

        result = engine.use_power_up(PowerUpKind.HINT)

        assert not result.success
        assert result.reason == RejectReason.RESOLVING
        assert engine.session.power_ups.hint == 3

    def test_exhausted_power_up(self, make_engine):
        engine = make_engine()
        engine.session.power_ups.hint = 0

        result = engine.use_power_up(PowerUpKind.HINT)

        assert not result.success
        assert result.reason == RejectReason.NONE_LEFT
        assert engine.session.power_ups.hint == 0

    def test_shuffle_keeps_matched_and_clears_memory(self, make_engine, scheduler):
        engine = make_engine(layout=(0, 1, 2, 0, 1, 2))
        game = engine.session
        play_pair(engine, scheduler, 0, 3)
        assert len(game.memory) == 2

        result = engine.use_power_up(PowerUpKind.SHUFFLE)

        assert result.success
        assert result.remaining == 1
        assert game.deck[0].pair_id == 0 and game.deck[3].pair_id == 0
        assert len(game.memory) == 0
        assert game.total_moves == 1

    def test_shuffle_rejected_with_card_up(self, make_engine):
        engine = make_engine()
        engine.flip(0)

        result = engine.use_power_up(PowerUpKind.SHUFFLE)

        assert result.reason == RejectReason.ALREADY_FLIPPED
        assert engine.session.power_ups.shuffle == 2

    def test_extra_time_extends_preview(self, make_engine, scheduler):
        engine = make_engine(preview_time=3)
        game = engine.session

        result = engine.use_power_up(PowerUpKind.EXTRA_TIME)

        assert result.success
        assert result.remaining == 1
        assert game.preview_remaining == 6

        scheduler.advance(5)
        assert game.phase == GamePhase.PREVIEW
        scheduler.advance(1)
        assert game.phase == GamePhase.PLAYING

    def test_extra_time_only_in_preview(self, make_engine):
        engine = make_engine(preview_time=0)

        result = engine.use_power_up(PowerUpKind.EXTRA_TIME)

        assert result.reason == RejectReason.WRONG_PHASE
        assert engine.session.power_ups.extra_time == 2

    def test_unknown_kind_raises(self, make_engine):
        engine = make_engine()
        with pytest.raises(ValueError):
            engine.use_power_up("teleport")


class TestCompletion:
    """Tests for game end in every mode."""

    def test_complete_exactly_once(self, make_engine, scheduler):
        engine = make_engine()
        play_pair(engine, scheduler, 0, 2)
        play_pair(engine, scheduler, 1, 3)
        scheduler.advance(120)

        completions = [r for r in engine.history if isinstance(r, GameComplete)]
        assert len(completions) == 1
        assert engine.flip(0).reason == RejectReason.WRONG_PHASE

    def test_empty_deck_completes_immediately(self, make_engine):
        engine = make_engine(layout=())
        assert engine.session.phase == GamePhase.COMPLETE
        assert engine.session.summary.won

    def test_game_time_includes_preview(self, make_engine, scheduler):
        engine = make_engine(preview_time=3)
        scheduler.advance(3)
        play_pair(engine, scheduler, 0, 2)
        play_pair(engine, scheduler, 1, 3)

        assert engine.session.summary.game_time == pytest.approx(5.0)

    def test_time_attack_runs_out(self, make_engine, scheduler, recorder):
        engine = make_engine(mode=GameMode.TIME_ATTACK)
        play_pair(engine, scheduler, 0, 2)

        scheduler.advance(60)

        summary = engine.session.summary
        assert engine.session.phase == GamePhase.COMPLETE
        assert not summary.won
        assert summary.stars == 1
        assert summary.winner_ids == []
        assert recorder.sounds[-1] == FeedbackEvent.LOSE

    def test_time_attack_won_in_time(self, make_engine, scheduler):
        engine = make_engine(mode=GameMode.TIME_ATTACK)
        play_pair(engine, scheduler, 0, 2)
        play_pair(engine, scheduler, 1, 3)

        assert engine.session.summary.won
        assert scheduler.pending(engine.owner) == 0

    def test_limited_moves_runs_out(self, make_engine, scheduler):
        engine = make_engine(mode=GameMode.LIMITED_MOVES)
        limit = move_limit_for(2)
        for _ in range(limit - 1):
            play_pair(engine, scheduler, 0, 1)
        assert engine.session.phase == GamePhase.PLAYING

        play_pair(engine, scheduler, 0, 1)

        assert engine.session.phase == GamePhase.COMPLETE
        assert not engine.session.summary.won

    def test_limited_moves_win_on_last_move(self, make_engine, scheduler):
        engine = make_engine(mode=GameMode.LIMITED_MOVES)
        play_pair(engine, scheduler, 0, 1)
        play_pair(engine, scheduler, 0, 1)
        play_pair(engine, scheduler, 0, 2)
        play_pair(engine, scheduler, 1, 3)

        assert engine.session.total_moves == move_limit_for(2)
        assert engine.session.summary.won

    def test_tied_top_scorers_all_win(self):
        players = two_humans() + [Player(player_id="p3", name="Cy")]
        players[0].score = 20
        players[1].score = 20
        players[2].score = 10
        assert _top_scorers(players) == ["p1", "p2"]

    def test_multiplayer_winner(self, make_engine, scheduler):
        engine = make_engine(
            layout=(0, 1, 2, 0, 1, 2), players=two_humans(), mode=GameMode.MULTIPLAYER
        )
        play_pair(engine, scheduler, 0, 1)  # p1 miss
        play_pair(engine, scheduler, 0, 3)  # p2 +10
        play_pair(engine, scheduler, 1, 4)  # p2 +12
        play_pair(engine, scheduler, 2, 5)  # p2 +14

        summary = engine.session.summary
        assert summary.winner_ids == ["p2"]
        assert summary.total_score == 36
        assert not summary.perfect_game

    def test_cancel_drops_pending_resolution(self, make_engine, scheduler):
        engine = make_engine()
        engine.flip(0)
        engine.flip(2)

        engine.cancel()
        scheduler.advance(5)

        assert engine.session.matched == set()
        assert scheduler.pending(engine.owner) == 0


class SteppedClock:
    """Wall-style clock that jumps when the test says so."""

    def __init__(self):
        self.time = 0.0

    def now(self):
        return self.time


class TestPolledClock:
    """A late run_due() catches every timer chain up to the clock."""

    @pytest.fixture
    def clock(self):
        return SteppedClock()

    def test_call_later_inside_callback_counts_from_due_time(self, scheduler, clock):
        seen = []

        def tick(n):
            seen.append((n, scheduler.now()))
            if n < 3:
                scheduler.call_later(1.0, tick, n + 1)

        scheduler.call_later(1.0, tick, 1)
        clock.time = 10.0

        assert scheduler.run_due() == 3
        assert seen == [(1, 1.0), (2, 2.0), (3, 3.0)]
        assert scheduler.now() == 10.0

    def test_preview_ends_on_time(self, make_engine, scheduler, clock):
        engine = make_engine(preview_time=5)

        clock.time = 10.0
        scheduler.run_due()

        game = engine.session
        assert game.phase == GamePhase.PLAYING
        assert game.playing_since == 5.0
        assert isinstance(engine.flip(0), Pending)

    def test_game_time_ignores_poll_delay(self, make_engine, scheduler, clock):
        engine = make_engine(layout=(0, 0))
        engine.flip(0)
        engine.flip(1)

        clock.time = 40.0
        scheduler.run_due()

        summary = engine.session.summary
        assert summary.won
        assert summary.game_time == pytest.approx(1.0)
        assert summary.stars == 3

    def test_time_attack_limit_from_play_start(self, make_engine, scheduler, clock):
        engine = make_engine(mode=GameMode.TIME_ATTACK, preview_time=2)

        clock.time = 500.0
        scheduler.run_due()

        game = engine.session
        assert game.phase == GamePhase.COMPLETE
        assert not game.summary.won
        assert game.completed_at == pytest.approx(62.0)

    def test_ai_game_plays_out_in_one_poll(self, make_engine, scheduler, clock, rng):
        players = [
            Player(player_id="a", name="A", is_ai=True, difficulty=Difficulty.EASY),
            Player(player_id="b", name="B", is_ai=True, difficulty=Difficulty.HARD),
        ]
        engine = make_engine(layout=(0, 1, 2, 0, 1, 2), players=players, ai_driver=AITurnDriver(rng=rng))

        clock.time = 1000.0
        scheduler.run_due()

        assert engine.session.phase == GamePhase.COMPLETE
        assert len(engine.session.matched) == 6

"""
Tests for the achievement catalog and evaluator.
"""

from ..catalog.achievements import ACHIEVEMENTS, achievement_progress, evaluate, get_achievement
from ..engine_core import Difficulty, GameMode, GameSummary, Player


def summary(**overrides):
    """A won, imperfect, slow solo game that earns nothing by default."""
    fields = dict(
        players=[Player(player_id="p1", name="You", score=40)],
        total_score=40,
        game_time=90.0,
        stars=1,
        mode=GameMode.AI,
        level=1,
        perfect_game=False,
        total_moves=10,
        best_streak=1,
        won=True,
        winner_ids=["p1"],
    )
    fields.update(overrides)
    return GameSummary(**fields)


def ids(s):
    return {a.id for a in evaluate(s)}


def versus_hard_ai(human_score, ai_score):
    players = [
        Player(player_id="p1", name="You", score=human_score),
        Player(player_id="ai", name="AI", score=ai_score, is_ai=True, difficulty=Difficulty.HARD),
    ]
    best = max(human_score, ai_score)
    return summary(
        players=players,
        total_score=human_score + ai_score,
        ai_difficulty=Difficulty.HARD,
        winner_ids=[p.player_id for p in players if p.score == best],
    )


class TestCatalog:

    def test_eight_unique_entries(self):
        assert len(ACHIEVEMENTS) == 8
        assert len({a.id for a in ACHIEVEMENTS}) == 8

    def test_lookup(self):
        assert get_achievement("combo_master").name == "Combo Master"
        assert get_achievement("nope") is None


class TestEvaluate:
    """Each rule is an independent predicate over the summary."""

    def test_nothing_for_plain_game(self):
        assert ids(summary()) == set()

    def test_perfect_memory(self):
        assert "perfect_memory" in ids(summary(perfect_game=True))

    def test_speed_runner_boundary(self):
        assert "speed_runner" in ids(summary(game_time=29.9))
        assert "speed_runner" not in ids(summary(game_time=30.0))

    def test_combo_master(self):
        assert "combo_master" in ids(summary(best_streak=3))
        assert "combo_master" not in ids(summary(best_streak=2))

    def test_mode_wins(self):
        assert "time_master" in ids(summary(mode=GameMode.TIME_ATTACK))
        assert "efficiency_expert" in ids(summary(mode=GameMode.LIMITED_MOVES))
        assert "time_master" not in ids(summary(mode=GameMode.TIME_ATTACK, won=False, winner_ids=[]))

    def test_endless_warrior(self):
        assert "endless_warrior" in ids(summary(mode=GameMode.ENDLESS, level=5))
        assert "endless_warrior" not in ids(summary(mode=GameMode.ENDLESS, level=4))

    def test_social_player(self):
        assert "social_player" in ids(summary(mode=GameMode.MULTIPLAYER))

    def test_several_at_once(self):
        s = summary(perfect_game=True, game_time=12.0, best_streak=4)
        assert ids(s) == {"perfect_memory", "speed_runner", "combo_master"}

    def test_ai_destroyer_needs_human_win(self):
        assert "ai_destroyer" in ids(versus_hard_ai(60, 40))
        assert "ai_destroyer" not in ids(versus_hard_ai(40, 60))

    def test_ai_destroyer_not_on_tie(self):
        assert "ai_destroyer" not in ids(versus_hard_ai(50, 50))

    def test_ai_destroyer_only_hard(self):
        s = versus_hard_ai(60, 40)
        s.ai_difficulty = Difficulty.MEDIUM
        assert "ai_destroyer" not in ids(s)


class TestProgress:

    def test_counts_distinct_known_ids(self):
        progress = achievement_progress(["combo_master", "combo_master", "bogus"])
        assert progress == {"unlocked": 1, "total": 8, "percentage": 13}

    def test_empty(self):
        assert achievement_progress([])["percentage"] == 0

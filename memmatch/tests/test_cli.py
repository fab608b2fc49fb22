"""
Tests for the command-line tool.
"""

import json

import pytest

from ..cli import main, run_simulation
from ..engine_core import GamePhase


class TestSimulate:

    def test_ai_vs_ai_finishes(self):
        engine = run_simulation(["medium", "hard"], pairs=6, seed=4)
        game = engine.session

        assert game.phase == GamePhase.COMPLETE
        assert len(game.matched) == 12
        assert game.summary.won
        assert sum(p.matches for p in game.players) == 6

    def test_seed_is_reproducible(self):
        first = run_simulation(["easy", "hard"], pairs=5, seed=21).session.summary
        second = run_simulation(["easy", "hard"], pairs=5, seed=21).session.summary
        assert [p.score for p in first.players] == [p.score for p in second.players]
        assert first.total_moves == second.total_moves

    def test_seat_limits(self):
        with pytest.raises(ValueError):
            run_simulation([])
        with pytest.raises(ValueError):
            run_simulation(["easy"] * 5)

    def test_command_prints_scores(self, capsys, tmp_path):
        main(["--data-file", str(tmp_path / "d.json"), "simulate", "--pairs", "4", "--seed", "1"])
        out = capsys.readouterr().out
        assert "Scores:" in out
        assert "Stars:" in out


class TestCatalogCommands:

    def test_stages(self, capsys, tmp_path):
        main(["--data-file", str(tmp_path / "d.json"), "stages"])
        out = capsys.readouterr().out
        assert "5x8" in out
        assert out.count("(locked)") == 9

    def test_achievements(self, capsys, tmp_path):
        main(["--data-file", str(tmp_path / "d.json"), "achievements"])
        out = capsys.readouterr().out
        assert "0/8" in out
        assert "Combo Master" in out


class TestStatsCommand:

    def test_show_and_reset(self, capsys, tmp_path):
        path = tmp_path / "d.json"
        path.write_text(json.dumps({"stats": {"gamesPlayed": 3, "totalScore": 90}}), encoding="utf-8")

        main(["--data-file", str(path), "stats"])
        assert "Games played:   3" in capsys.readouterr().out

        main(["--data-file", str(path), "stats", "--reset"])
        assert json.loads(path.read_text(encoding="utf-8"))["stats"]["gamesPlayed"] == 0

    def test_no_command_exits(self):
        with pytest.raises(SystemExit):
            main([])

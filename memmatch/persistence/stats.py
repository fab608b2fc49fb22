"""
Stats Store - Aggregate player statistics as a JSON blob.

The blob is the only state that outlives a game:

    {
      "stats": {"gamesPlayed": 0, "totalScore": 0, "bestTime": 999},
      "achievements": ["perfect_memory", ...],
      "preferences": {"soundEnabled": true, "hapticsEnabled": true},
      "unlockedStages": 1,
      "achievementCounts": {"perfect_memory": 2}
    }

Storage is never allowed to block play:
- Missing keys take their defaults
- A malformed section is replaced by its defaults, the rest is kept
- Read and write failures are logged and the caller keeps going in memory
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, TYPE_CHECKING
import json
import logging
import os
import tempfile

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..catalog.stages import MAX_STAGE
from ..engine_core.state import GameMode

if TYPE_CHECKING:
    from ..engine_core.state import GameSummary

logger = logging.getLogger(__name__)

DEFAULT_BEST_TIME = 999.0


class PlayerStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    games_played: int = Field(0, alias="gamesPlayed", ge=0)
    total_score: int = Field(0, alias="totalScore", ge=0)
    best_time: float = Field(DEFAULT_BEST_TIME, alias="bestTime", ge=0)


class Preferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sound_enabled: bool = Field(True, alias="soundEnabled")
    haptics_enabled: bool = Field(True, alias="hapticsEnabled")


class GameData(BaseModel):
    """The persisted blob."""
    model_config = ConfigDict(populate_by_name=True)

    stats: PlayerStats = Field(default_factory=PlayerStats)
    achievements: list[str] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)
    unlocked_stages: int = Field(1, alias="unlockedStages", ge=1, le=MAX_STAGE)
    achievement_counts: dict[str, int] = Field(default_factory=dict, alias="achievementCounts")

    @classmethod
    def from_raw(cls, raw: Any) -> GameData:
        """
        Build from parsed JSON, salvaging what can be salvaged.

        Each top-level section is validated on its own; a bad one falls
        back to its default without discarding the others.
        """
        if not isinstance(raw, dict):
            logger.warning("Stats blob is not an object, using defaults")
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stats blob partly invalid (%d error(s)), salvaging", e.error_count())

        defaults = cls().model_dump(by_alias=True)
        salvaged: dict[str, Any] = {}
        for key, default in defaults.items():
            if key not in raw:
                continue
            try:
                cls.model_validate({**defaults, key: raw[key]})
                salvaged[key] = raw[key]
            except ValidationError:
                logger.warning("Dropping malformed stats section %r", key)
        return cls.model_validate({**defaults, **salvaged})

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), indent=2, ensure_ascii=False)


def record_game(data: GameData, summary: GameSummary) -> GameData:
    """
    Fold a finished game into the aggregate.

    Achievements are kept once per id; repeated unlocks are counted in
    achievement_counts instead of appended again.
    """
    updated = data.model_copy(deep=True)
    stats = updated.stats
    stats.games_played += 1
    stats.total_score += max(summary.total_score, 0)
    if summary.won:
        stats.best_time = min(stats.best_time, summary.game_time)

    for record in summary.new_achievements:
        achievement_id = getattr(record, "id", record)
        updated.achievement_counts[achievement_id] = updated.achievement_counts.get(achievement_id, 0) + 1
        if achievement_id not in updated.achievements:
            updated.achievements.append(achievement_id)

    if summary.mode == GameMode.STAGE and summary.won:
        updated.unlocked_stages = min(max(updated.unlocked_stages, summary.level + 1), MAX_STAGE)

    return updated


class StatsStore:
    """
    File-backed store for GameData.

    With path=None the store lives only in memory (tests, demos).

    Usage:
        store = StatsStore(Path("~/.memmatch/data.json").expanduser())
        data = store.load()
        data = record_game(data, summary)
        store.save(data)
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._memory: GameData | None = None

    def load(self) -> GameData:
        """Read the blob; any failure yields defaults."""
        if self.path is None:
            return (self._memory or GameData()).model_copy(deep=True)
        if not self.path.exists():
            return GameData()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Error loading game data from %s: %s", self.path, e)
            return GameData()
        return GameData.from_raw(raw)

    def save(self, data: GameData) -> bool:
        """Write the blob atomically. Returns False (and logs) on failure."""
        if self.path is None:
            self._memory = data.model_copy(deep=True)
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data.to_json())
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error("Error saving game data to %s: %s", self.path, e)
            return False

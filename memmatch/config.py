"""
Configuration - Environment settings and engine timings.

Settings are read from the environment once, when the app context starts.
Timings are plain values so tests can shrink or stretch them freely.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import os


@dataclass(frozen=True)
class EngineTimings:
    """Delays (in seconds) used by the engine and the AI driver."""
    preview_tick: float = 1.0
    resolve_delay: float = 1.0
    hint_duration: float = 1.5
    extra_time_increment: int = 3
    ai_second_flip_delay: float = 0.8
    time_attack_limit: float = 60.0


@dataclass(frozen=True)
class PowerUpAllowance:
    """Power-up units handed out at the start of every game."""
    hint: int = 3
    shuffle: int = 2
    extra_time: int = 2


def _default_data_file() -> Path:
    return Path.home() / ".memmatch" / "data.json"


@dataclass
class Settings:
    """
    Process-level settings.

    Environment:
        MEMMATCH_ENV        development | production
        MEMMATCH_DATA_FILE  path of the stats JSON blob
        MEMMATCH_LOG_LEVEL  logging level name
        ALLOWED_ORIGINS     comma-separated CORS origins
    """
    env: str = "development"
    data_file: Path = field(default_factory=_default_data_file)
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    timings: EngineTimings = field(default_factory=EngineTimings)
    power_ups: PowerUpAllowance = field(default_factory=PowerUpAllowance)

    @classmethod
    def from_env(cls) -> Settings:
        data_file = os.getenv("MEMMATCH_DATA_FILE")
        return cls(
            env=os.getenv("MEMMATCH_ENV", "development"),
            data_file=Path(data_file).expanduser() if data_file else _default_data_file(),
            log_level=os.getenv("MEMMATCH_LOG_LEVEL", "INFO").upper(),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )

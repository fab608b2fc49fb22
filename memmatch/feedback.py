"""
Feedback - Audio/haptic side channel.

The engine signals discrete events; an external player turns them into
sound and vibration. Nothing that happens here may affect game state:
every call into the player is guarded and failures are logged and dropped.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Protocol
import logging

logger = logging.getLogger(__name__)


class FeedbackEvent(Enum):
    FLIP = "flip"
    MATCH = "match"
    MISS = "miss"
    WIN = "win"
    LOSE = "lose"
    POWERUP = "powerup"


class HapticIntensity(Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


@dataclass(frozen=True)
class Tone:
    """Synth recipe for an event sound."""
    frequencies: tuple[float, ...]
    duration: float
    waveform: str = "sine"


TONES: dict[FeedbackEvent, Tone] = {
    FeedbackEvent.FLIP: Tone((800,), 0.1, "sine"),
    FeedbackEvent.MATCH: Tone((1200,), 0.2, "triangle"),
    FeedbackEvent.MISS: Tone((400,), 0.3, "sawtooth"),
    FeedbackEvent.WIN: Tone((523, 659, 784), 0.5, "sine"),  # C major
    FeedbackEvent.LOSE: Tone((200,), 0.5, "sawtooth"),
    FeedbackEvent.POWERUP: Tone((1000,), 0.2, "square"),
}

HAPTICS: dict[FeedbackEvent, HapticIntensity] = {
    FeedbackEvent.FLIP: HapticIntensity.LIGHT,
    FeedbackEvent.MATCH: HapticIntensity.MEDIUM,
    FeedbackEvent.WIN: HapticIntensity.HEAVY,
    FeedbackEvent.POWERUP: HapticIntensity.MEDIUM,
}

VIBRATION_MS: dict[HapticIntensity, int] = {
    HapticIntensity.LIGHT: 50,
    HapticIntensity.MEDIUM: 100,
    HapticIntensity.HEAVY: 200,
}


class FeedbackPlayer(Protocol):
    """Whatever actually makes noise or buzzes."""

    def play(self, event: FeedbackEvent, tone: Tone) -> None: ...

    def vibrate(self, intensity: HapticIntensity, duration_ms: int) -> None: ...


class LoggingPlayer:
    """Player that only writes events to the log (CLI and headless runs)."""

    def play(self, event: FeedbackEvent, tone: Tone) -> None:
        logger.debug("sound %s %s %.2fs", event.value, tone.frequencies, tone.duration)

    def vibrate(self, intensity: HapticIntensity, duration_ms: int) -> None:
        logger.debug("haptic %s %dms", intensity.value, duration_ms)


class FeedbackChannel:
    """
    Guarded front for a FeedbackPlayer.

    Honours the sound/haptics preferences and swallows player failures.
    A channel without a player is a silent no-op.
    """

    def __init__(
        self,
        player: FeedbackPlayer | None = None,
        sound_enabled: bool = True,
        haptics_enabled: bool = True,
    ):
        self.player = player
        self.sound_enabled = sound_enabled
        self.haptics_enabled = haptics_enabled

    def signal(self, event: FeedbackEvent):
        """Play the sound and haptic for an event."""
        if self.player is None:
            return
        if self.sound_enabled:
            try:
                self.player.play(event, TONES[event])
            except Exception as e:
                logger.warning("Failed to play sound %s: %s", event.value, e)
        intensity = HAPTICS.get(event)
        if self.haptics_enabled and intensity is not None:
            try:
                self.player.vibrate(intensity, VIBRATION_MS[intensity])
            except Exception as e:
                logger.warning("Haptic feedback failed: %s", e)

    def close(self):
        self.player = None

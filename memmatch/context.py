"""
App Context - Process-scoped owner of shared services.

Everything that would otherwise be a module-level singleton (the stats
store, the feedback player, the session manager and its scheduler) lives
here and is created by init() and released by teardown(). Components get
what they need passed in; nothing is initialised at import time.
"""

from __future__ import annotations
import logging
import random

from .config import Settings
from .engine_core.scheduler import Clock, Scheduler, SystemClock
from .feedback import FeedbackChannel, FeedbackPlayer
from .persistence import GameData, StatsStore
from .session import SessionManager

logger = logging.getLogger(__name__)


class AppContext:
    """
    Usage:
        ctx = AppContext(Settings.from_env())
        ctx.init()
        session = ctx.sessions.create_session(mode="ai", difficulty="hard")
        ...
        ctx.teardown()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Clock | None = None,
        feedback_player: FeedbackPlayer | None = None,
        stats_store: StatsStore | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings or Settings()
        self._clock = clock
        self._feedback_player = feedback_player
        self._stats_store = stats_store
        self._rng = rng

        self.stats: StatsStore | None = None
        self.feedback: FeedbackChannel | None = None
        self.scheduler: Scheduler | None = None
        self.sessions: SessionManager | None = None
        self.game_data: GameData | None = None

    @property
    def initialized(self) -> bool:
        return self.sessions is not None

    def init(self) -> AppContext:
        """Load stats and build the shared services. Safe to call twice."""
        if self.initialized:
            return self

        self.stats = self._stats_store or StatsStore(self.settings.data_file)
        self.game_data = self.stats.load()
        prefs = self.game_data.preferences
        self.feedback = FeedbackChannel(
            self._feedback_player,
            sound_enabled=prefs.sound_enabled,
            haptics_enabled=prefs.haptics_enabled,
        )
        self.scheduler = Scheduler(self._clock or SystemClock())
        self.sessions = SessionManager(
            scheduler=self.scheduler,
            feedback=self.feedback,
            stats_store=self.stats,
            timings=self.settings.timings,
            power_ups=self.settings.power_ups,
            rng=self._rng,
        )
        logger.info("Context initialised (env=%s, data=%s)", self.settings.env, self.stats.path)
        return self

    def teardown(self):
        """End all sessions and drop every timer."""
        if not self.initialized:
            return
        self.sessions.shutdown()
        self.scheduler.cancel_all()
        self.feedback.close()
        self.sessions = None
        self.scheduler = None
        self.feedback = None
        logger.info("Context torn down")

    def reload_game_data(self) -> GameData:
        """Re-read the stats file. Initialises the context on first use."""
        self.init()
        self.game_data = self.stats.load()
        return self.game_data

    def set_preferences(self, sound_enabled: bool | None = None, haptics_enabled: bool | None = None) -> GameData:
        """Update and persist the feedback preferences."""
        data = self.reload_game_data()
        if sound_enabled is not None:
            data.preferences.sound_enabled = sound_enabled
            self.feedback.sound_enabled = sound_enabled
        if haptics_enabled is not None:
            data.preferences.haptics_enabled = haptics_enabled
            self.feedback.haptics_enabled = haptics_enabled
        self.stats.save(data)
        return data

    def __enter__(self) -> AppContext:
        return self.init()

    def __exit__(self, *exc):
        self.teardown()

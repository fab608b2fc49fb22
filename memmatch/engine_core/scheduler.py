"""
Scheduler - Single timer queue driving every delayed effect.

The engine never sleeps. Preview ticks, flip resolution, AI think time and
hint expiry are all callbacks queued here and fired in due-time order when
the owner of the scheduler pumps it:
- Tests and simulations use a ManualClock and call advance()
- The API service uses a SystemClock and calls run_due() on every request

Timers are tagged with an owner so a superseded session can cancel all of
its callbacks at once.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol
import heapq
import itertools
import logging
import time

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    """Monotonic wall clock."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Virtual clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def set(self, value: float):
        if value < self._now:
            raise ValueError("ManualClock cannot go backwards")
        self._now = value

    def advance(self, seconds: float):
        self.set(self._now + seconds)


@dataclass
class TimerHandle:
    """A queued callback. Cancelled handles stay in the heap and are skipped."""
    when: float
    seq: int
    callback: Callable[..., Any]
    args: tuple = ()
    owner: Any = None
    cancelled: bool = False
    fired: bool = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


@dataclass
class Scheduler:
    """
    Timer queue bound to a clock.

    Usage:
        clock = ManualClock()
        scheduler = Scheduler(clock)
        scheduler.call_later(1.0, on_tick, owner=session_id)
        scheduler.advance(1.0)   # fires on_tick
    """
    clock: Clock = field(default_factory=SystemClock)
    _queue: list[tuple[float, int, TimerHandle]] = field(default_factory=list)
    _counter: Any = field(default_factory=itertools.count)
    _firing_at: float | None = None

    def now(self) -> float:
        """Current time. Inside a callback this is the firing timer's due time."""
        if self._firing_at is not None:
            return self._firing_at
        return self.clock.now()

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
        owner: Any = None,
    ) -> TimerHandle:
        """Queue `callback(*args)` to fire `delay` seconds from now."""
        handle = TimerHandle(
            when=self.now() + max(delay, 0.0),
            seq=next(self._counter),
            callback=callback,
            args=args,
            owner=owner,
        )
        heapq.heappush(self._queue, (handle.when, handle.seq, handle))
        return handle

    def cancel_owner(self, owner: Any) -> int:
        """Cancel every pending timer tagged with `owner`."""
        cancelled = 0
        for _, _, handle in self._queue:
            if handle.owner == owner and handle.active:
                handle.cancel()
                cancelled += 1
        if cancelled:
            logger.debug("Cancelled %d timer(s) for %s", cancelled, owner)
        return cancelled

    def cancel_all(self):
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def pending(self, owner: Any = None) -> int:
        """Number of live timers, optionally for one owner."""
        return sum(
            1 for _, _, h in self._queue
            if h.active and (owner is None or h.owner == owner)
        )

    def next_due(self) -> float | None:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def run_due(self) -> int:
        """
        Fire every timer due at or before the current time.

        Each callback runs at its own due time, so timers it queues are
        measured from there and fire in this same call once they fall due.
        A late poll therefore catches the whole chain up to the clock.
        Returns the number of callbacks run.
        """
        fired = 0
        now = self.now()
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > now:
                return fired
            _, _, handle = heapq.heappop(self._queue)
            handle.fired = True
            previous, self._firing_at = self._firing_at, handle.when
            try:
                handle.callback(*handle.args)
            finally:
                self._firing_at = previous
            fired += 1

    def advance(self, seconds: float) -> int:
        """
        Move a ManualClock forward, firing timers at their own due times.

        Callbacks observe the clock at their due time, not at the target.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() needs a ManualClock")
        target = self.clock.now() + seconds
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self.clock.set(max(due, self.clock.now()))
            fired += self.run_due()
        self.clock.set(target)
        return fired

    def run_until_idle(self, owner: Any = None, limit: float = 3600.0) -> int:
        """Advance a ManualClock until no timers (of `owner`) remain."""
        fired = 0
        start = self.now()
        while self.pending(owner):
            due = self.next_due()
            if due is None or due - start > limit:
                break
            fired += self.advance(max(due - self.now(), 0.0))
        return fired

    def _drop_cancelled(self):
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)

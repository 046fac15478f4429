"""Clocks and tick schedulers for the live pipeline.

The synchronizer never loops on its own. Each tick schedules the next
one through a Scheduler and gets back a TickHandle; cancelling the
handle stops future ticks deterministically. That keeps the per-tick
logic independent of any particular event loop:

  - ManualScheduler + ManualClock: one tick per run_next(), the clock
    stepping by a fixed frame interval. Fully deterministic; used by the
    tests and for headless, faster-than-realtime capture.
  - RealtimeScheduler + MonotonicClock: ticks paced to the frame rate
    against wall-clock time. Sleeping happens only between ticks.
"""

import time
from collections import deque
from collections.abc import Callable


# ── Clocks ───────────────────────────────────────────────────────


class Clock:
    def now(self) -> float:
        raise NotImplementedError


class MonotonicClock(Clock):
    def now(self) -> float:
        return time.monotonic()


class ManualClock(Clock):
    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


# ── Schedulers ───────────────────────────────────────────────────


class TickHandle:
    """Cancellation token for one scheduled tick."""

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    def __init__(self):
        self._pending: deque[TickHandle] = deque()

    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        handle = TickHandle(callback)
        self._pending.append(handle)
        return handle

    @property
    def idle(self) -> bool:
        self._drop_cancelled()
        return not self._pending

    def _drop_cancelled(self) -> None:
        while self._pending and self._pending[0].cancelled:
            self._pending.popleft()

    def _pop(self) -> TickHandle | None:
        self._drop_cancelled()
        return self._pending.popleft() if self._pending else None


class ManualScheduler(Scheduler):
    """Run ticks on demand, advancing a ManualClock after each one.

    Args:
        clock: The clock shared with the transport and synchronizer.
        interval: Seconds the clock advances per tick (1 / fps).
    """

    def __init__(self, clock: ManualClock, interval: float = 1 / 30):
        super().__init__()
        self.clock = clock
        self.interval = interval

    def run_next(self) -> bool:
        """Run one pending tick. Returns False when nothing was pending."""
        handle = self._pop()
        if handle is None:
            return False
        handle.callback()
        self.clock.advance(self.interval)
        return True

    def run(self, max_ticks: int = 1_000_000) -> int:
        """Run ticks until idle. Returns the number of ticks executed."""
        ticks = 0
        while ticks < max_ticks and self.run_next():
            ticks += 1
        return ticks


class RealtimeScheduler(Scheduler):
    """Pace ticks to *fps* against the monotonic clock."""

    def __init__(self, fps: float = 30):
        super().__init__()
        self.interval = 1.0 / fps

    def run(self) -> int:
        """Block running ticks until none are pending."""
        ticks = 0
        deadline = time.monotonic()
        while True:
            handle = self._pop()
            if handle is None:
                return ticks
            delay = deadline - time.monotonic()
            if delay > 0:
                time.sleep(delay)
            handle.callback()
            ticks += 1
            # Don't try to catch up after a slow tick; drop the backlog.
            deadline = max(deadline + self.interval, time.monotonic())

"""Tests for clocks and tick schedulers."""

import pytest

from scenecast.scheduling import ManualClock, ManualScheduler, RealtimeScheduler


class TestManualScheduler:
    def test_runs_pending_tick_then_advances_clock(self):
        clock = ManualClock()
        sched = ManualScheduler(clock, interval=0.5)
        seen = []
        sched.schedule(lambda: seen.append(clock.now()))
        assert sched.run_next()
        assert seen == [0.0]
        assert clock.now() == 0.5

    def test_idle_returns_false(self):
        sched = ManualScheduler(ManualClock())
        assert sched.idle
        assert not sched.run_next()

    def test_cancelled_tick_never_runs(self):
        sched = ManualScheduler(ManualClock())
        calls = []
        handle = sched.schedule(lambda: calls.append(1))
        handle.cancel()
        assert sched.idle
        assert sched.run() == 0
        assert calls == []

    def test_self_rescheduling_chain(self):
        clock = ManualClock()
        sched = ManualScheduler(clock, interval=0.1)
        count = []

        def tick():
            count.append(1)
            if len(count) < 5:
                sched.schedule(tick)

        sched.schedule(tick)
        assert sched.run() == 5
        assert clock.now() == pytest.approx(0.5)

    def test_max_ticks(self):
        sched = ManualScheduler(ManualClock())

        def forever():
            sched.schedule(forever)

        sched.schedule(forever)
        assert sched.run(max_ticks=7) == 7


class TestRealtimeScheduler:
    def test_paces_ticks(self):
        import time

        sched = RealtimeScheduler(fps=50)
        stamps = []

        def tick():
            stamps.append(time.monotonic())
            if len(stamps) < 5:
                sched.schedule(tick)

        sched.schedule(tick)
        assert sched.run() == 5
        # 4 intervals of 20ms, with generous slack for slow machines.
        assert stamps[-1] - stamps[0] >= 0.07

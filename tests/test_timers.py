"""Tests for TimerDriver: anchored ticks, single-flight expiry, threaded mode."""

import threading
from datetime import timedelta

from conftest import T0, FakeClock
from liftlog.core.timers import TimerDriver


class TestManualTicks:
    """autostart=False: arming only records anchors, ticks are driven by hand."""

    def test_nothing_armed(self):
        driver = TimerDriver(clock=FakeClock(), autostart=False)
        assert driver.tick_workout() is None
        assert driver.tick_rest() is None
        assert not driver.workout_armed
        assert not driver.rest_armed

    def test_workout_elapsed_from_anchor(self):
        clock = FakeClock()
        ticks = []
        driver = TimerDriver(clock=clock, autostart=False, on_workout_tick=ticks.append)
        driver.start_workout_clock("2026-03-02T10:00:00.000Z")

        clock.advance(65.5)
        assert driver.tick_workout() == 65500
        assert ticks == [65500]

    def test_workout_elapsed_never_negative(self):
        clock = FakeClock()
        driver = TimerDriver(clock=clock, autostart=False)
        driver.start_workout_clock(T0 + timedelta(seconds=30))
        assert driver.tick_workout() == 0

    def test_rest_counts_down_and_expires_once(self):
        clock = FakeClock()
        expired = []
        driver = TimerDriver(clock=clock, autostart=False, on_rest_expired=lambda: expired.append(clock()))
        driver.start_rest_countdown(T0 + timedelta(seconds=60))

        assert driver.tick_rest() == 60000
        clock.advance(59.95)
        assert driver.tick_rest() == 50
        assert expired == []

        clock.advance(1)
        assert driver.tick_rest() == 0
        assert len(expired) == 1
        assert not driver.rest_armed

        assert driver.tick_rest() is None
        assert len(expired) == 1

    def test_rearming_replaces_previous_countdown(self):
        clock = FakeClock()
        driver = TimerDriver(clock=clock, autostart=False)
        driver.start_rest_countdown(T0 + timedelta(seconds=60))
        driver.start_rest_countdown(T0 + timedelta(seconds=10))
        assert driver.rest_end_time == T0 + timedelta(seconds=10)
        assert driver.tick_rest() == 10000

    def test_extend_rest(self):
        clock = FakeClock()
        driver = TimerDriver(clock=clock, autostart=False)
        assert driver.extend_rest(30000) is False

        driver.start_rest_countdown(T0 + timedelta(seconds=60))
        assert driver.extend_rest(30000) is True
        assert driver.tick_rest() == 90000

    def test_stop_all(self):
        driver = TimerDriver(clock=FakeClock(), autostart=False)
        driver.start_workout_clock(T0)
        driver.start_rest_countdown(T0 + timedelta(seconds=60))
        driver.stop_all()
        assert not driver.workout_armed
        assert not driver.rest_armed

    def test_stop_rest_keeps_workout_clock(self):
        driver = TimerDriver(clock=FakeClock(), autostart=False)
        driver.start_workout_clock(T0)
        driver.start_rest_countdown(T0 + timedelta(seconds=60))
        driver.stop_rest_countdown()
        assert driver.workout_armed
        assert not driver.rest_armed

    def test_drivers_do_not_share_state(self):
        a = TimerDriver(clock=FakeClock(), autostart=False)
        b = TimerDriver(clock=FakeClock(), autostart=False)
        a.start_rest_countdown(T0 + timedelta(seconds=60))
        assert a.rest_armed
        assert not b.rest_armed


class TestThreadedTicks:
    """autostart=True spawns daemon tickers."""

    def test_overdue_rest_expires_on_first_tick(self):
        clock = FakeClock()
        fired = threading.Event()
        driver = TimerDriver(clock=clock, rest_interval=0.01, on_rest_expired=fired.set)
        try:
            driver.start_rest_countdown(T0 - timedelta(seconds=1))
            assert fired.wait(timeout=2.0)
            assert not driver.rest_armed
        finally:
            driver.stop_all()

    def test_workout_ticks_arrive(self):
        clock = FakeClock()
        ticked = threading.Event()
        driver = TimerDriver(
            clock=clock,
            workout_interval=0.01,
            on_workout_tick=lambda ms: ticked.set(),
        )
        try:
            driver.start_workout_clock(T0)
            assert ticked.wait(timeout=2.0)
        finally:
            driver.stop_all()

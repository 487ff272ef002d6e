"""
Clock/timer driver for the live session.

Two independent timers are owned by one TimerDriver instance:

- workout: every WORKOUT_TICK_SECONDS, report now - start_time
- rest:    every REST_TICK_SECONDS, report max(0, rest_end - now) and,
           the first time it reaches zero, disarm and fire on_rest_expired

Both values are recomputed from absolute anchors on each tick, so a tick
that never happens (suspended process, busy machine) loses nothing.
Each kind is single-flight: arming a timer cancels the previous timer of
the same kind first.

With autostart=False no threads are spawned; the timers are only armed
and callers drive them with tick_workout() / tick_rest().  Tests and
one-shot CLI commands use this mode.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from .clock import Clock, elapsed_ms, parse_timestamp, utc_now
from .config import REST_TICK_SECONDS, WORKOUT_TICK_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


class _Ticker(threading.Thread):
    """Daemon thread calling fn immediately and then every interval seconds."""

    def __init__(self, name: str, interval: float, fn: Callable[[], object]):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self._fn = fn
        self._stopped = threading.Event()

    def run(self) -> None:
        self._call()
        while not self._stopped.wait(self.interval):
            self._call()

    def _call(self) -> None:
        try:
            self._fn()
        except Exception:
            logger.exception("Timer %s callback failed", self.name)

    def stop(self) -> None:
        # No join: stop() may be called from inside the ticker's own callback.
        self._stopped.set()


class TimerDriver:
    """
    Owns the workout-duration clock and the rest countdown.

    Callbacks:
        on_workout_tick(elapsed_ms)   after every workout tick
        on_rest_tick(remaining_ms)    after every rest tick
        on_rest_expired()             once, when the rest countdown hits zero
    """

    WORKOUT = "workout"
    REST = "rest"

    def __init__(
        self,
        clock: Clock = utc_now,
        *,
        autostart: bool = True,
        workout_interval: float = WORKOUT_TICK_SECONDS,
        rest_interval: float = REST_TICK_SECONDS,
        on_workout_tick: TickCallback | None = None,
        on_rest_tick: TickCallback | None = None,
        on_rest_expired: Callable[[], None] | None = None,
    ):
        self.clock = clock
        self.autostart = autostart
        self.workout_interval = workout_interval
        self.rest_interval = rest_interval
        self.on_workout_tick = on_workout_tick
        self.on_rest_tick = on_rest_tick
        self.on_rest_expired = on_rest_expired

        self._lock = threading.Lock()
        self._workout_start: datetime | None = None
        self._rest_end: datetime | None = None
        self._tickers: dict[str, _Ticker] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def workout_armed(self) -> bool:
        return self._workout_start is not None

    @property
    def rest_armed(self) -> bool:
        return self._rest_end is not None

    @property
    def rest_end_time(self) -> datetime | None:
        return self._rest_end

    # ------------------------------------------------------------------
    # Arming / disarming
    # ------------------------------------------------------------------

    def start_workout_clock(self, start_time: datetime | str) -> None:
        """Arm the duration clock anchored at start_time."""
        if isinstance(start_time, str):
            start_time = parse_timestamp(start_time)
        with self._lock:
            self._cancel(self.WORKOUT)
            self._workout_start = start_time
            self._spawn(self.WORKOUT, self.workout_interval, self.tick_workout)

    def start_rest_countdown(self, end_time: datetime) -> None:
        """Arm the rest countdown to expire at end_time."""
        with self._lock:
            self._cancel(self.REST)
            self._rest_end = end_time
            self._spawn(self.REST, self.rest_interval, self.tick_rest)
        logger.debug("Rest countdown armed until %s", end_time.isoformat())

    def stop_rest_countdown(self) -> None:
        with self._lock:
            self._cancel(self.REST)
            self._rest_end = None

    def extend_rest(self, extra_ms: int) -> bool:
        """Push the armed rest end back; returns False if no countdown is armed."""
        with self._lock:
            if self._rest_end is None:
                return False
            self._rest_end += timedelta(milliseconds=extra_ms)
            return True

    def stop_all(self) -> None:
        """Cancel every live timer."""
        with self._lock:
            for kind in list(self._tickers):
                self._cancel(kind)
            self._workout_start = None
            self._rest_end = None

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def tick_workout(self) -> int | None:
        """Recompute workout elapsed ms; None when the clock is not armed."""
        with self._lock:
            start = self._workout_start
        if start is None:
            return None
        value = elapsed_ms(self.clock(), start)
        if self.on_workout_tick is not None:
            self.on_workout_tick(value)
        return value

    def tick_rest(self) -> int | None:
        """
        Recompute remaining rest ms; None when no countdown is armed.

        The tick that observes zero disarms the countdown before invoking
        on_rest_expired, so expiry fires exactly once.
        """
        expired = False
        with self._lock:
            end = self._rest_end
            if end is None:
                return None
            # Ceiling, so zero is only reported once end has passed.
            remaining = max(0, -((self.clock() - end) // timedelta(milliseconds=1)))
            if remaining == 0:
                self._cancel(self.REST)
                self._rest_end = None
                expired = True

        if self.on_rest_tick is not None:
            self.on_rest_tick(remaining)
        if expired:
            logger.debug("Rest countdown reached zero")
            if self.on_rest_expired is not None:
                self.on_rest_expired()
        return remaining

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _spawn(self, kind: str, interval: float, fn: Callable[[], object]) -> None:
        # Caller holds self._lock; the first tick blocks on it until released.
        if not self.autostart:
            return
        ticker = _Ticker(f"liftlog-{kind}", interval, fn)
        self._tickers[kind] = ticker
        ticker.start()

    def _cancel(self, kind: str) -> None:
        # Caller holds self._lock.
        ticker = self._tickers.pop(kind, None)
        if ticker is not None:
            ticker.stop()

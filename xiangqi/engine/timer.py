"""
Per-player countdown clock with Fischer increment.

State machine:

    READY --start--> RUNNING --pause--> PAUSED --start/resume--> RUNNING
    RUNNING --time reaches zero--> EXPIRED
    any state --reset--> READY

EXPIRED is terminal: only `reset()` leaves it. Invalid transitions are silent no-ops (check `get_state()`).

Remaining time is computed from the elapsed (monotonic) time between samples, never by counting
fixed-size ticks, so pauses and scheduler jitter do not accumulate drift.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import StrEnum
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
ClockFn = Callable[[], float]
T = TypeVar("T")

SECONDS_PER_HOUR = 3600


class TimerState(StrEnum):
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


def format_seconds(seconds: float) -> str:
    """MM:SS below one hour, H:MM:SS from one hour on. Partial seconds are dropped."""
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, SECONDS_PER_HOUR)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ChessTimer:
    """Countdown clock of a single player.

    * `clock`: source of monotonic time in seconds (tests inject a fake one)
    * `auto_tick`: run a daemon thread calling `tick()` every `tick_interval` seconds while running.
      Without it, whoever owns the timer calls `tick()` (e.g. a UI/game loop); queries sample the clock themselves anyway.

    All mutable state is guarded by a lock, so commands and ticks can come from different threads.
    Listeners are called outside of the lock and must not call mutating timer methods synchronously.
    """

    def __init__(
        self,
        initial_seconds: float = 180.0,
        increment_seconds: float = 2.0,
        *,
        clock: ClockFn = time.monotonic,
        tick_interval: float = 0.1,
        auto_tick: bool = False,
    ) -> None:
        self._initial_seconds = float(initial_seconds)
        self._increment_seconds = float(increment_seconds)
        self._clock = clock
        self._tick_interval = tick_interval
        self._auto_tick = auto_tick

        self._lock = threading.Lock()
        self._remaining = self._initial_seconds
        self._state = TimerState.READY
        self._last_sample: Optional[float] = None
        self._listeners: list[Listener] = []

        self._ticker: Optional[threading.Thread] = None
        self._ticker_stop: Optional[threading.Event] = None
        self._stopped_tickers: list[threading.Thread] = []

    # -- LISTENERS ---
    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners = [item for item in self._listeners if item is not listener]

    def _notify_listeners(self) -> None:
        """Snapshot first: a listener removing itself (or another one) does not disturb the iteration."""
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            listener()

    # -- COMMANDS ---
    def start(self) -> None:
        """Start (or resume) counting down. No-op if already running or expired."""
        with self._lock:
            if self._state in (TimerState.RUNNING, TimerState.EXPIRED):
                return
            self._state = TimerState.RUNNING
            self._last_sample = self._clock()
            self._start_ticker()
        self._notify_listeners()

    def resume(self) -> None:
        self.start()

    def pause(self) -> None:
        """Freeze the remaining time. No-op if not running."""
        with self._lock:
            just_expired = self._consume_elapsed()
            if self._state != TimerState.RUNNING:
                if not just_expired:
                    return
            else:
                self._state = TimerState.PAUSED
                self._last_sample = None
                self._stop_ticker()
        self._notify_listeners()

    def reset(self) -> None:
        """Back to READY with the originally configured time."""
        with self._lock:
            self._remaining = self._initial_seconds
            self._state = TimerState.READY
            self._last_sample = None
            self._stop_ticker()
        self._notify_listeners()

    def add_increment(self) -> None:
        """Add the configured increment (typically right after the player's move). An expired timer stays at zero."""
        with self._lock:
            just_expired = self._consume_elapsed()
            if self._state == TimerState.EXPIRED:
                if not just_expired:
                    return
            else:
                self._remaining += self._increment_seconds
        self._notify_listeners()

    def set_time_remaining(self, seconds: float) -> None:
        """Override the remaining time (tests / rule variants). Ignored once expired: only `reset()` leaves EXPIRED."""
        with self._lock:
            just_expired = self._consume_elapsed()
            if self._state == TimerState.EXPIRED:
                if not just_expired:
                    return
            else:
                self._remaining = max(0.0, float(seconds))
                if self._state == TimerState.RUNNING:
                    self._last_sample = self._clock()
        self._notify_listeners()

    def tick(self) -> None:
        """Sample the elapsed time. Listeners get notified while running, and once on expiry."""
        with self._lock:
            just_expired = self._consume_elapsed()
            running = self._state == TimerState.RUNNING
        if running or just_expired:
            self._notify_listeners()

    def dispose(self) -> None:
        """Stop the background ticker, wait for its thread(s) to finish and drop all listeners."""
        with self._lock:
            self._stop_ticker()
            self._listeners = []
            tickers, self._stopped_tickers = self._stopped_tickers, []
        # NOTE: join outside of the lock, a ticker may be waiting for it. A listener on a ticker thread cannot join itself.
        current = threading.current_thread()
        for ticker in tickers:
            if ticker is not current:
                ticker.join()

    # -- QUERIES ---
    def get_time_remaining(self) -> float:
        return self._sample(lambda: self._remaining)

    def get_state(self) -> TimerState:
        return self._sample(lambda: self._state)

    def is_expired(self) -> bool:
        return self.get_state() == TimerState.EXPIRED

    def get_formatted_time(self) -> str:
        return format_seconds(self.get_time_remaining())

    @property
    def initial_seconds(self) -> float:
        return self._initial_seconds

    @property
    def increment_seconds(self) -> float:
        return self._increment_seconds

    # -- INTERNAL ---
    def _sample(self, read: Callable[[], T]) -> T:
        """Bring the remaining time up to date before reading. Expiry found this way is announced as well."""
        with self._lock:
            just_expired = self._consume_elapsed()
            value = read()
        if just_expired:
            self._notify_listeners()
        return value

    def _consume_elapsed(self) -> bool:
        """Subtract the time elapsed since the last sample. Returns True if this made the timer expire.

        NOTE: caller must hold the lock.
        """
        if self._state != TimerState.RUNNING or self._last_sample is None:
            return False

        now = self._clock()
        self._remaining = max(0.0, self._remaining - (now - self._last_sample))
        self._last_sample = now
        if self._remaining > 0.0:
            return False

        self._remaining = 0.0
        self._state = TimerState.EXPIRED
        self._last_sample = None
        self._stop_ticker()
        logger.info("Timer expired")
        return True

    def _start_ticker(self) -> None:
        """NOTE: caller must hold the lock."""
        if not self._auto_tick:
            return
        self._stopped_tickers = [thread for thread in self._stopped_tickers if thread.is_alive()]
        stop = threading.Event()
        self._ticker_stop = stop
        self._ticker = threading.Thread(
            target=self._run_ticker, args=(stop,), name="chess-timer-tick", daemon=True
        )
        self._ticker.start()

    def _stop_ticker(self) -> None:
        """NOTE: caller must hold the lock. The thread notices the event at its next wake up, `dispose()` joins it."""
        if self._ticker_stop is not None:
            self._ticker_stop.set()
        if self._ticker is not None:
            self._stopped_tickers.append(self._ticker)
        self._ticker_stop = None
        self._ticker = None

    def _run_ticker(self, stop: threading.Event) -> None:
        while not stop.wait(self._tick_interval):
            self.tick()

"""
Both players' timers in one place.

Keeps exactly one of the two ChessTimers running: the side to move. After a move, the player who just moved
receives the increment and is paused, and the opponent's timer starts.
"""

import logging
from typing import Optional

from xiangqi.core.config import get_settings
from xiangqi.core.shared_types import Color
from xiangqi.engine.timer import ChessTimer, ClockFn, Listener, TimerState

logger = logging.getLogger(__name__)


class MatchClock:
    """
    NOTE: time control not given explicitly is taken from the settings (`XIANGQI_INITIAL_SECONDS`,
    `XIANGQI_INCREMENT_SECONDS`, `XIANGQI_TICK_INTERVAL`).
    """

    def __init__(
        self,
        initial_seconds: Optional[float] = None,
        increment_seconds: Optional[float] = None,
        *,
        timers: Optional[dict[Color, ChessTimer]] = None,
        clock: Optional[ClockFn] = None,
        auto_tick: bool = False,
        enabled: bool = True,
    ) -> None:
        if timers is None:
            settings = get_settings()
            if initial_seconds is None:
                initial_seconds = settings.initial_seconds
            if increment_seconds is None:
                increment_seconds = settings.increment_seconds
            kwargs = {"clock": clock} if clock is not None else {}
            timers = {
                color: ChessTimer(
                    initial_seconds,
                    increment_seconds,
                    tick_interval=settings.tick_interval,
                    auto_tick=auto_tick,
                    **kwargs,
                )
                for color in Color
            }
        self.timers = timers
        self.current_player = Color.RED
        self.enabled = enabled
        self._listeners: list[Listener] = []

        # relay changes of either timer to whoever listens to the match clock
        for timer in self.timers.values():
            timer.add_listener(self._notify_listeners)

    # -- LISTENERS ---
    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners = [item for item in self._listeners if item is not listener]

    def _notify_listeners(self) -> None:
        for listener in tuple(self._listeners):
            listener()

    # -- GAME FLOW ---
    def timer_for(self, color: Color) -> ChessTimer:
        return self.timers[color]

    def start_new_game(self, first_player: Color = Color.RED) -> None:
        """Fresh timers; the first player's clock starts (if enabled)"""
        for timer in self.timers.values():
            timer.reset()
        self.current_player = first_player
        if self.enabled:
            self.timer_for(first_player).start()

    def switch_player(self, player: Color) -> None:
        """`player` is the side to move now. The other side just completed a move."""
        if not self.enabled:
            return

        self.current_player = player
        previous_player = player.opponent
        self.timer_for(previous_player).add_increment()
        self.timer_for(previous_player).pause()
        self.timer_for(player).start()
        logger.debug("Clock switched to %s", player)

    def hand_over(self, player: Color) -> None:
        """Make `player` the running side without any increment (e.g. after taking back a move)"""
        if not self.enabled:
            return

        self.current_player = player
        self.timer_for(player.opponent).pause()
        self.timer_for(player).start()

    def set_time_remaining(self, player: Color, seconds: float) -> None:
        self.timer_for(player).set_time_remaining(seconds)

    def pause_all(self) -> None:
        for timer in self.timers.values():
            timer.pause()

    def resume_current(self) -> None:
        if not self.enabled:
            return
        self.timer_for(self.current_player).start()

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled:
            self.timer_for(self.current_player).start()
        else:
            self.pause_all()

    # -- QUERIES ---
    def is_expired(self, player: Color) -> bool:
        return self.timer_for(player).is_expired()

    def expired_color(self) -> Optional[Color]:
        """The side whose flag fell, if any"""
        return next((color for color in Color if self.is_expired(color)), None)

    def time_remaining(self) -> dict[Color, float]:
        return {color: timer.get_time_remaining() for color, timer in self.timers.items()}

    def states(self) -> dict[Color, TimerState]:
        return {color: timer.get_state() for color, timer in self.timers.items()}

    def dispose(self) -> None:
        for timer in self.timers.values():
            timer.dispose()
        self._listeners = []

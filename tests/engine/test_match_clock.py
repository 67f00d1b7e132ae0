"""Unit tests for xiangqi/engine/match_clock.py"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from xiangqi.core.config import get_settings
from xiangqi.core.shared_types import Color
from xiangqi.engine.match_clock import MatchClock
from xiangqi.engine.timer import TimerState

if TYPE_CHECKING:
    from conftest import FakeClock


@pytest.fixture
def match_clock(fake_clock: FakeClock) -> MatchClock:
    return MatchClock(180, 2, clock=fake_clock)


def test_new_game_starts_first_player(match_clock: MatchClock) -> None:
    match_clock.start_new_game()
    assert match_clock.states() == {Color.RED: TimerState.RUNNING, Color.BLACK: TimerState.READY}
    assert match_clock.current_player == Color.RED


def test_switch_player(match_clock: MatchClock, fake_clock: FakeClock) -> None:
    """The player who moved gets the increment and stops, the opponent's clock starts"""
    match_clock.start_new_game()
    fake_clock.advance(5)
    match_clock.switch_player(Color.BLACK)
    fake_clock.advance(3)

    remaining = match_clock.time_remaining()
    assert remaining[Color.RED] == pytest.approx(177)
    assert remaining[Color.BLACK] == pytest.approx(177)
    assert match_clock.states() == {Color.RED: TimerState.PAUSED, Color.BLACK: TimerState.RUNNING}
    assert match_clock.current_player == Color.BLACK


def test_hand_over_without_increment(match_clock: MatchClock, fake_clock: FakeClock) -> None:
    match_clock.start_new_game()
    match_clock.switch_player(Color.BLACK)
    fake_clock.advance(4)
    match_clock.hand_over(Color.RED)

    assert match_clock.time_remaining()[Color.BLACK] == pytest.approx(176)
    assert match_clock.states() == {Color.RED: TimerState.RUNNING, Color.BLACK: TimerState.PAUSED}


def test_pause_and_resume(match_clock: MatchClock, fake_clock: FakeClock) -> None:
    match_clock.start_new_game()
    match_clock.pause_all()
    fake_clock.advance(60)
    assert match_clock.time_remaining()[Color.RED] == 180

    match_clock.resume_current()
    fake_clock.advance(1)
    assert match_clock.time_remaining()[Color.RED] == pytest.approx(179)


def test_disabled_clock_does_not_run(match_clock: MatchClock, fake_clock: FakeClock) -> None:
    match_clock.start_new_game()
    match_clock.set_enabled(False)
    match_clock.switch_player(Color.BLACK)
    fake_clock.advance(30)
    assert match_clock.time_remaining() == {Color.RED: 180, Color.BLACK: 180}

    match_clock.set_enabled(True)
    fake_clock.advance(30)
    assert match_clock.time_remaining()[Color.RED] == pytest.approx(150)


def test_expired_color(match_clock: MatchClock, fake_clock: FakeClock) -> None:
    match_clock.start_new_game()
    match_clock.switch_player(Color.BLACK)
    assert match_clock.expired_color() is None

    match_clock.set_time_remaining(Color.BLACK, 1)
    fake_clock.advance(2)
    assert match_clock.is_expired(Color.BLACK)
    assert not match_clock.is_expired(Color.RED)
    assert match_clock.expired_color() == Color.BLACK


def test_listeners_relayed(match_clock: MatchClock) -> None:
    calls: list[int] = []

    def listener() -> None:
        calls.append(1)

    match_clock.add_listener(listener)
    match_clock.timer_for(Color.BLACK).start()
    assert calls == [1]

    match_clock.remove_listener(listener)
    match_clock.timer_for(Color.BLACK).pause()
    assert calls == [1]


def test_dispose(match_clock: MatchClock) -> None:
    calls: list[int] = []
    match_clock.add_listener(lambda: calls.append(1))
    match_clock.dispose()
    match_clock.start_new_game()
    assert calls == []


def test_time_control_from_settings(monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock) -> None:
    monkeypatch.setenv("XIANGQI_INITIAL_SECONDS", "600")
    monkeypatch.setenv("XIANGQI_INCREMENT_SECONDS", "5")
    get_settings.cache_clear()
    try:
        match_clock = MatchClock(clock=fake_clock)
    finally:
        get_settings.cache_clear()

    for color in Color:
        assert match_clock.timer_for(color).initial_seconds == 600
        assert match_clock.timer_for(color).increment_seconds == 5


def test_explicit_time_control_wins_over_settings(
    monkeypatch: pytest.MonkeyPatch, fake_clock: FakeClock
) -> None:
    monkeypatch.setenv("XIANGQI_INITIAL_SECONDS", "600")
    get_settings.cache_clear()
    try:
        match_clock = MatchClock(60, 0, clock=fake_clock)
    finally:
        get_settings.cache_clear()

    assert match_clock.time_remaining() == {Color.RED: 60, Color.BLACK: 60}

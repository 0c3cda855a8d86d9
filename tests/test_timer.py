"""Tests for session clocks and the focus timer."""

from datetime import datetime, timedelta, timezone

import pytest

from folio.core.accountability import (
    FocusTimer,
    SessionClock,
    TimerState,
    TimerTransitionError,
    WorkSession,
    format_clock,
    format_countdown,
)
from folio.core.accountability.timer import PRESETS, get_preset

START = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer(clock):
    return FocusTimer(clock)


class TestFormatting:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0:00"), (65, "1:05"), (599, "9:59"), (3600, "1:00:00"), (3725, "1:02:05"), (-5, "0:00")],
    )
    def test_format_clock(self, seconds, expected):
        assert format_clock(seconds) == expected

    @pytest.mark.parametrize(
        ("seconds", "expected"), [(0, "00:00"), (59, "00:59"), (1500, "25:00"), (3661, "61:01")]
    )
    def test_format_countdown(self, seconds, expected):
        assert format_countdown(seconds) == expected


class TestSessionClock:
    def make_session(self, **fields) -> WorkSession:
        return WorkSession(id="s1", session_title="Focus", start_time=START, duration=25, **fields)

    def test_running_session(self):
        clock = SessionClock(self.make_session(is_active=True), now=START + timedelta(minutes=10))

        assert clock.elapsed_seconds == 600
        assert clock.remaining_seconds == 900
        assert clock.progress_percent == pytest.approx(40.0)
        assert clock.is_overtime is False
        assert clock.describe() == "10:00 elapsed, 15:00 left"

    def test_overtime(self):
        clock = SessionClock(self.make_session(is_active=True), now=START + timedelta(minutes=30))

        assert clock.remaining_seconds == 0
        assert clock.progress_percent == 100.0
        assert clock.describe() == "30:00 elapsed, over time"

    def test_finished_session_uses_end_time(self):
        session = self.make_session(end_time=START + timedelta(minutes=5))
        clock = SessionClock(session, now=START + timedelta(hours=3))

        assert clock.elapsed_seconds == 300


class TestFocusTimer:
    """Tests for FocusTimer transitions."""

    def test_initial_state(self, timer):
        assert timer.state == TimerState.IDLE
        assert timer.remaining_seconds == 0

    def test_counts_down_and_finishes(self, timer, clock):
        timer.start(1)
        assert timer.display == "01:00"

        clock.advance(20.5)
        assert timer.remaining_seconds == 40
        assert timer.state == TimerState.RUNNING

        clock.advance(40)
        assert timer.state == TimerState.FINISHED
        assert timer.remaining_seconds == 0
        assert timer.progress_percent == 100.0

    def test_pause_freezes_remaining(self, timer, clock):
        timer.start(1)
        clock.advance(15)
        timer.pause()

        clock.advance(100)
        assert timer.state == TimerState.PAUSED
        assert timer.remaining_seconds == 45

        timer.resume()
        clock.advance(5)
        assert timer.remaining_seconds == 40

    def test_reset_is_resumable(self, timer, clock):
        timer.start(2)
        clock.advance(30)
        timer.reset()

        assert timer.state == TimerState.IDLE
        assert timer.remaining_seconds == 120

        timer.resume()
        assert timer.state == TimerState.RUNNING

    def test_stop_clears_remaining(self, timer, clock):
        timer.start(2)
        timer.stop()

        assert timer.state == TimerState.IDLE
        assert timer.remaining_seconds == 0
        with pytest.raises(TimerTransitionError):
            timer.resume()

    def test_invalid_transitions(self, timer, clock):
        with pytest.raises(TimerTransitionError):
            timer.pause()

        timer.start(1)
        with pytest.raises(TimerTransitionError):
            timer.resume()

        clock.advance(61)
        with pytest.raises(TimerTransitionError):
            timer.pause()

    def test_transition_error_is_value_error(self):
        assert issubclass(TimerTransitionError, ValueError)

    @pytest.mark.parametrize("minutes", [0, -5])
    def test_start_requires_positive_minutes(self, timer, minutes):
        with pytest.raises(ValueError):
            timer.start(minutes)

    def test_start_restarts_a_running_timer(self, timer, clock):
        timer.start(1)
        clock.advance(30)
        timer.start(5)

        assert timer.remaining_seconds == 300


class TestPresets:
    def test_preset_lookup(self):
        preset = get_preset("deep work")

        assert preset.minutes == 45
        assert preset.is_break is False

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("nap")

    def test_start_break_preset(self, timer):
        timer.start_preset(get_preset("Break"))

        assert timer.is_break is True
        assert timer.display == "05:00"

    def test_labels_are_unique(self):
        labels = [p.label for p in PRESETS]
        assert len(labels) == len(set(labels))

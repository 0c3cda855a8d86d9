"""
Timers for the accountability tracker.

``SessionClock`` derives elapsed/remaining time for the store's current
work session. ``FocusTimer`` is a standalone countdown (Pomodoro style)
that is never persisted.

FocusTimer states::

    idle --start--> running --pause--> paused --resume--> running
    running --(time runs out)--> finished
    any --stop--> idle (remaining 0)
    any --reset--> idle (remaining = full duration, resumable)
    any --start--> running (fresh countdown)
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from folio.core.accountability.models import WorkSession, utcnow


def format_clock(seconds: float) -> str:
    """
    Format a duration as ``M:SS``, or ``H:MM:SS`` from one hour up.

    Example:
        >>> format_clock(65)
        '1:05'
        >>> format_clock(3725)
        '1:02:05'
    """
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_countdown(seconds: float) -> str:
    """
    Format a countdown as zero-padded ``MM:SS``.

    Example:
        >>> format_countdown(1500)
        '25:00'
    """
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


class SessionClock:
    """Elapsed and remaining time for a work session at a given instant."""

    def __init__(self, session: WorkSession, now: datetime | None = None) -> None:
        self.session = session
        self.now = now or utcnow()

    @property
    def planned_seconds(self) -> int:
        return self.session.duration * 60

    @property
    def elapsed_seconds(self) -> int:
        end = self.session.end_time or self.now
        return max(0, math.floor((end - self.session.start_time).total_seconds()))

    @property
    def remaining_seconds(self) -> int:
        return max(0, self.planned_seconds - self.elapsed_seconds)

    @property
    def is_overtime(self) -> bool:
        return self.remaining_seconds == 0

    @property
    def progress_percent(self) -> float:
        if self.planned_seconds <= 0:
            return 0.0
        return min(100.0, self.elapsed_seconds / self.planned_seconds * 100)

    def describe(self) -> str:
        elapsed = format_clock(self.elapsed_seconds)
        if self.is_overtime:
            return f"{elapsed} elapsed, over time"
        return f"{elapsed} elapsed, {format_clock(self.remaining_seconds)} left"


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class TimerTransitionError(ValueError):
    """Raised on a transition the current timer state does not allow."""


@dataclass(frozen=True)
class TimerPreset:
    label: str
    minutes: int
    is_break: bool = False


PRESETS: tuple[TimerPreset, ...] = (
    TimerPreset("Pomodoro", 25),
    TimerPreset("Quick Focus", 15),
    TimerPreset("Deep Work", 45),
    TimerPreset("Hour Block", 60),
    TimerPreset("Break", 5, is_break=True),
    TimerPreset("Long Break", 10, is_break=True),
)


def get_preset(label: str) -> TimerPreset:
    for preset in PRESETS:
        if preset.label.lower() == label.lower():
            return preset
    raise KeyError(label)


class FocusTimer:
    """
    Standalone countdown timer.

    Time is read from ``clock`` (``time.monotonic`` by default), so
    tests can drive it with a fake clock.

    Example:
        >>> timer = FocusTimer()
        >>> timer.start(25)
        >>> timer.display
        '25:00'
    """

    def __init__(self, clock: Callable[[], float] | None = None, default_minutes: int = 25) -> None:
        self._clock = clock or time.monotonic
        self.duration_seconds = default_minutes * 60
        self.is_break = False
        self._state = TimerState.IDLE
        self._remaining = 0.0
        self._deadline: float | None = None

    @property
    def state(self) -> TimerState:
        self.tick()
        return self._state

    @property
    def remaining_seconds(self) -> int:
        self.tick()
        return math.ceil(self._remaining)

    @property
    def progress_percent(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return (self.duration_seconds - self.remaining_seconds) / self.duration_seconds * 100

    @property
    def display(self) -> str:
        return format_countdown(self.remaining_seconds)

    def tick(self) -> TimerState:
        """Refresh remaining time; a running timer that hits zero finishes."""
        if self._state == TimerState.RUNNING and self._deadline is not None:
            self._remaining = max(0.0, self._deadline - self._clock())
            if self._remaining <= 0:
                self._state = TimerState.FINISHED
                self._deadline = None
        return self._state

    def start(self, minutes: float, is_break: bool = False) -> None:
        if minutes <= 0:
            raise ValueError("minutes must be positive")
        self.duration_seconds = int(minutes * 60)
        self.is_break = is_break
        self._remaining = float(self.duration_seconds)
        self._deadline = self._clock() + self._remaining
        self._state = TimerState.RUNNING

    def start_preset(self, preset: TimerPreset) -> None:
        self.start(preset.minutes, is_break=preset.is_break)

    def pause(self) -> None:
        if self.tick() != TimerState.RUNNING:
            raise TimerTransitionError(f"cannot pause a {self._state.value} timer")
        self._deadline = None
        self._state = TimerState.PAUSED

    def resume(self) -> None:
        state = self.tick()
        resumable = state == TimerState.PAUSED or (state == TimerState.IDLE and self._remaining > 0)
        if not resumable:
            raise TimerTransitionError(f"cannot resume a {state.value} timer")
        self._deadline = self._clock() + self._remaining
        self._state = TimerState.RUNNING

    def stop(self) -> None:
        self._state = TimerState.IDLE
        self._remaining = 0.0
        self._deadline = None

    def reset(self) -> None:
        self._state = TimerState.IDLE
        self._remaining = float(self.duration_seconds)
        self._deadline = None

"""Date and time sources used by the core.

The counter engine compares calendar dates in the device's local time zone,
so every component asks a clock for "today" instead of calling
``date.today()`` directly. Tests drive a :class:`FixedClock` across day
boundaries without waiting on real time.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Source of the current local date and time."""

    def today(self) -> date:
        ...

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the operating system's local time."""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Settable clock for tests and scripted runs."""

    def __init__(self, current: datetime | date):
        self._current = _as_datetime(current)

    def today(self) -> date:
        return self._current.date()

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime | date) -> None:
        self._current = _as_datetime(current)

    def advance(self, *, days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
        """Move the clock forward and return the new local time."""

        delta = timedelta(days=days, hours=hours, minutes=minutes)
        if delta < timedelta(0):
            raise ValueError("FixedClock only moves forward")
        self._current = self._current + delta
        return self._current


def _as_datetime(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, datetime.min.time()).replace(hour=12)


__all__ = ["Clock", "FixedClock", "SystemClock"]

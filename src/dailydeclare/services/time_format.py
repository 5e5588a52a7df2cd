"""Parsing and display of reminder times at the UI boundary."""

from __future__ import annotations

import re

from ..errors import InvalidTime
from ..models.reminder import ReminderTime

_TIME_PATTERN = re.compile(
    r"^\s*(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<period>[AaPp]\.?[Mm]\.?)?\s*$"
)


def parse_time(text: str) -> ReminderTime:
    """Parse ``"8:00 AM"``, ``"8 pm"``, ``"08:30"`` or ``"20:30"``.

    Raises:
        InvalidTime: when the text is not a recognizable time of day
    """
    if not isinstance(text, str):
        raise InvalidTime(f"Expected a time string, got {text!r}")
    match = _TIME_PATTERN.match(text)
    if not match:
        raise InvalidTime(f"Unrecognized time: {text!r}")

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    period = match.group("period")

    if period is not None:
        if not 1 <= hour <= 12:
            raise InvalidTime(f"12-hour times need an hour between 1 and 12: {text!r}")
        is_pm = period[0].lower() == "p"
        hour = hour % 12 + (12 if is_pm else 0)
    elif match.group("minute") is None:
        # A bare number is ambiguous without AM/PM or minutes.
        raise InvalidTime(f"Ambiguous time, add minutes or AM/PM: {text!r}")

    return ReminderTime(hour=hour, minute=minute)


def format_time(value: ReminderTime, *, twelve_hour: bool = True) -> str:
    """Render a time as ``"8:00 AM"`` or, with ``twelve_hour=False``, ``"08:00"``."""
    if not twelve_hour:
        return f"{value.hour:02d}:{value.minute:02d}"
    hour12 = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour12}:{value.minute:02d} {period}"


__all__ = ["format_time", "parse_time"]

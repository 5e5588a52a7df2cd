"""Daily reminder records and their time-of-day values."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Mapping

from ..errors import InvalidTime


@dataclass(frozen=True, order=True)
class ReminderTime:
    """A wall-clock time with no date component; recurs daily."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.hour, bool) or not isinstance(self.hour, int):
            raise InvalidTime(f"hour must be an integer, got {self.hour!r}")
        if isinstance(self.minute, bool) or not isinstance(self.minute, int):
            raise InvalidTime(f"minute must be an integer, got {self.minute!r}")
        if not 0 <= self.hour <= 23:
            raise InvalidTime(f"hour out of range 0-23: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise InvalidTime(f"minute out of range 0-59: {self.minute}")

    @classmethod
    def from_time(cls, value: time | datetime) -> "ReminderTime":
        return cls(hour=value.hour, minute=value.minute)

    def next_occurrence(self, now: datetime) -> datetime:
        """Return the first moment strictly after ``now`` this time comes round."""

        candidate = now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate


def _flag(record: Mapping[str, Any], name: str) -> bool:
    value = record.get(name, True)
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be true or false, got {value!r}")
    return value


@dataclass
class Reminder:
    """A persisted daily reminder."""

    id: str
    time: ReminderTime
    title: str
    body: str
    enabled: bool = True
    sound: bool = True

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "enabled": self.enabled,
            "hour": self.time.hour,
            "minute": self.time.minute,
            "title": self.title,
            "body": self.body,
            "sound": self.sound,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Reminder":
        return cls(
            id=str(record["id"]),
            time=ReminderTime(hour=int(record["hour"]), minute=int(record.get("minute", 0))),
            title=str(record.get("title", "")),
            body=str(record.get("body", "")),
            enabled=_flag(record, "enabled"),
            sound=_flag(record, "sound"),
        )


@dataclass(frozen=True)
class ReminderTemplate:
    """Seed data for reminders created on first run."""

    time: ReminderTime
    title: str
    body: str
    sound: bool = True


DEFAULT_REMINDERS: tuple[ReminderTemplate, ...] = (
    ReminderTemplate(
        time=ReminderTime(8, 0),
        title="Morning Declarations",
        body="Time for your morning declarations to start your day with purpose!",
    ),
    ReminderTemplate(
        time=ReminderTime(20, 0),
        title="Evening Declarations",
        body="Time for your evening declarations to end your day with gratitude!",
    ),
)


__all__ = ["DEFAULT_REMINDERS", "Reminder", "ReminderTemplate", "ReminderTime"]

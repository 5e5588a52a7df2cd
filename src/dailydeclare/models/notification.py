"""Values exchanged with the notification backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str
    sound: bool = True
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScheduledNotification:
    """A live daily notification as reported by the backend."""

    identifier: str
    hour: int
    minute: int
    content: NotificationContent


__all__ = ["NotificationContent", "PermissionStatus", "ScheduledNotification"]

"""Table and value exports."""

from .counter import CounterScope, CounterState, CounterUpdate, Rollover
from .notification import NotificationContent, PermissionStatus, ScheduledNotification
from .reminder import DEFAULT_REMINDERS, Reminder, ReminderTemplate, ReminderTime
from .settings import AppSetting

__all__ = [
    "AppSetting",
    "CounterScope",
    "CounterState",
    "CounterUpdate",
    "DEFAULT_REMINDERS",
    "NotificationContent",
    "PermissionStatus",
    "Reminder",
    "ReminderTemplate",
    "ReminderTime",
    "Rollover",
    "ScheduledNotification",
]

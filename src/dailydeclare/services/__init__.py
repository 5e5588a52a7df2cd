"""Service layer for counter bookkeeping and reminder scheduling."""

from .counter import CounterEngine
from .reminders import ReconcileResult, ReconcileStatus, ReminderScheduler
from .time_format import format_time, parse_time

__all__ = [
    "CounterEngine",
    "ReconcileResult",
    "ReconcileStatus",
    "ReminderScheduler",
    "format_time",
    "parse_time",
]

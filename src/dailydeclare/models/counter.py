"""Declaration counter state and update events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class CounterScope(str, Enum):
    """Which part of the counter a reset applies to."""

    DAILY = "daily"
    TOTAL = "total"
    ALL = "all"


class Rollover(str, Enum):
    """Relationship between the last rollover check and today."""

    SAME_DAY = "same_day"
    NEXT_DAY = "next_day"
    GAP_DAY = "gap_day"


@dataclass(frozen=True)
class CounterState:
    """Snapshot of the persisted declaration counter."""

    daily_count: int = 0
    total_count: int = 0
    last_reset_date: Optional[date] = None
    last_active_date: Optional[date] = None
    current_streak: int = 0
    best_streak: int = 0
    first_action_date: Optional[date] = None


@dataclass(frozen=True)
class CounterUpdate:
    """Payload delivered to counter observers after every change."""

    daily_count: int
    total_count: int


__all__ = ["CounterScope", "CounterState", "CounterUpdate", "Rollover"]

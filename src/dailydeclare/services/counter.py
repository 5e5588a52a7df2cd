"""Declaration counter with daily rollover and streak tracking.

State lives in the key-value store under the ``counter.`` namespace. Every
read goes through :meth:`CounterEngine.load_state`, which zeroes the daily
count the first time it runs on a new calendar day. Streaks only move when an
action is recorded: a missed day is noticed on the next action, not at
rollover, so no background job is needed to break a streak.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from ..clock import Clock, SystemClock
from ..domain.repositories import KeyValueStore
from ..errors import StorageUnavailable
from ..logging_config import get_logger
from ..models.counter import CounterScope, CounterState, CounterUpdate, Rollover

logger = get_logger(__name__)

Listener = Callable[[CounterUpdate], None]

KEY_DAILY = "counter.daily_count"
KEY_TOTAL = "counter.total_count"
KEY_LAST_RESET = "counter.last_reset_date"
KEY_LAST_ACTIVE = "counter.last_active_date"
KEY_CURRENT_STREAK = "counter.current_streak"
KEY_BEST_STREAK = "counter.best_streak"
KEY_FIRST_ACTION = "counter.first_action_date"

COUNTER_KEYS = (
    KEY_DAILY,
    KEY_TOTAL,
    KEY_LAST_RESET,
    KEY_LAST_ACTIVE,
    KEY_CURRENT_STREAK,
    KEY_BEST_STREAK,
    KEY_FIRST_ACTION,
)


def classify_rollover(last_reset: Optional[date], today: date) -> Rollover:
    """Compare the last rollover check with today by calendar date."""
    if last_reset == today:
        return Rollover.SAME_DAY
    if last_reset is not None and (today - last_reset).days == 1:
        return Rollover.NEXT_DAY
    # Never checked, several days ago, or a clock that moved backwards.
    return Rollover.GAP_DAY


def next_streak(current: int, last_active: Optional[date], today: date) -> int:
    """Streak length after recording an action on ``today``."""
    if last_active == today:
        return max(current, 1)
    if last_active is not None and (today - last_active).days == 1:
        return current + 1
    return 1


def _parse_int(key: str, raw: Optional[str]) -> int:
    if raw in (None, ""):
        return 0
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning(f"Ignoring malformed counter value {key}={raw!r}")
        return 0


def _parse_date(key: str, raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed counter date {key}={raw!r}")
        return None


def _format_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def state_to_record(state: CounterState) -> dict[str, str]:
    return {
        KEY_DAILY: str(state.daily_count),
        KEY_TOTAL: str(state.total_count),
        KEY_LAST_RESET: _format_date(state.last_reset_date),
        KEY_LAST_ACTIVE: _format_date(state.last_active_date),
        KEY_CURRENT_STREAK: str(state.current_streak),
        KEY_BEST_STREAK: str(state.best_streak),
        KEY_FIRST_ACTION: _format_date(state.first_action_date),
    }


def state_from_record(record: dict[str, Optional[str]]) -> CounterState:
    current = _parse_int(KEY_CURRENT_STREAK, record.get(KEY_CURRENT_STREAK))
    best = _parse_int(KEY_BEST_STREAK, record.get(KEY_BEST_STREAK))
    return CounterState(
        daily_count=_parse_int(KEY_DAILY, record.get(KEY_DAILY)),
        total_count=_parse_int(KEY_TOTAL, record.get(KEY_TOTAL)),
        last_reset_date=_parse_date(KEY_LAST_RESET, record.get(KEY_LAST_RESET)),
        last_active_date=_parse_date(KEY_LAST_ACTIVE, record.get(KEY_LAST_ACTIVE)),
        current_streak=current,
        best_streak=max(best, current),
        first_action_date=_parse_date(KEY_FIRST_ACTION, record.get(KEY_FIRST_ACTION)),
    )


class CounterEngine:
    """Authoritative bookkeeping of declaration counts and streaks."""

    def __init__(self, store: KeyValueStore, *, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()
        self._listeners: list[Listener] = []

    # Observers ---------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for update events and return its disposer."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def _emit(self, state: CounterState) -> None:
        update = CounterUpdate(daily_count=state.daily_count, total_count=state.total_count)
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception as exc:
                logger.error(f"Counter listener {listener!r} failed: {exc}", exc_info=True)

    # Persistence -------------------------------------------------------
    def _persist(self, values: dict[str, str], *, action: str) -> None:
        try:
            self.store.multi_set(values)
        except StorageUnavailable:
            logger.error(f"Counter {action} not saved; state left unchanged")
            raise

    # Operations --------------------------------------------------------
    def load_state(self) -> CounterState:
        """Read the counter, applying a rollover when the day has changed."""
        state = state_from_record(self.store.multi_get(COUNTER_KEYS))
        today = self.clock.today()
        rollover = classify_rollover(state.last_reset_date, today)
        if rollover is Rollover.SAME_DAY:
            return state

        rolled = replace(state, daily_count=0, last_reset_date=today)
        self._persist(
            {KEY_DAILY: "0", KEY_LAST_RESET: today.isoformat()},
            action="rollover",
        )
        logger.info(
            f"Counter rollover ({rollover.value})",
            extra={
                "previous_reset": _format_date(state.last_reset_date),
                "today": today.isoformat(),
                "dropped_daily": state.daily_count,
            },
        )
        return rolled

    def record_action(self) -> CounterState:
        """Count one declaration and advance the streak on a new active day."""
        state = self.load_state()
        today = self.clock.today()

        current = next_streak(state.current_streak, state.last_active_date, today)
        updated = replace(
            state,
            daily_count=state.daily_count + 1,
            total_count=state.total_count + 1,
            last_active_date=today,
            current_streak=current,
            best_streak=max(state.best_streak, current),
            first_action_date=state.first_action_date or today,
        )
        self._persist(state_to_record(updated), action="record")

        if updated.current_streak != state.current_streak:
            logger.info(
                f"Streak now {updated.current_streak} (best {updated.best_streak})",
                extra={"previous_streak": state.current_streak},
            )
        self._emit(updated)
        return updated

    def reset_counter(self, scope: CounterScope | str) -> CounterState:
        """Zero the daily or total count, or wipe every counter field with ``"all"``.

        Raises:
            ValueError: for an unknown scope
        """
        scope = CounterScope(scope)
        if scope is CounterScope.ALL:
            today = self.clock.today()
            updated = CounterState(last_reset_date=today)
            self._persist(state_to_record(updated), action="reset all")
        else:
            state = self.load_state()
            if scope is CounterScope.DAILY:
                updated = replace(state, daily_count=0)
                self._persist({KEY_DAILY: "0"}, action="reset daily")
            else:
                updated = replace(state, total_count=0)
                self._persist({KEY_TOTAL: "0"}, action="reset total")

        logger.info(
            f"Counter reset ({scope.value})",
            extra={"daily_count": updated.daily_count, "total_count": updated.total_count},
        )
        self._emit(updated)
        return updated

    def days_tracked(self, state: Optional[CounterState] = None) -> int:
        """Calendar days from the first declaration through today, inclusive."""
        state = state or self.load_state()
        if state.first_action_date is None:
            return 0
        return max(1, (self.clock.today() - state.first_action_date).days + 1)

    def daily_average(self, state: Optional[CounterState] = None) -> int:
        """Declarations per tracked day, rounded half up; 0 before the first one."""
        state = state or self.load_state()
        days = self.days_tracked(state)
        if days == 0 or state.total_count <= 0:
            return 0
        return (state.total_count * 2 + days) // (days * 2)


__all__ = [
    "COUNTER_KEYS",
    "CounterEngine",
    "classify_rollover",
    "next_streak",
    "state_from_record",
    "state_to_record",
]

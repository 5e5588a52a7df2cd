"""Pytest configuration and shared fixtures for DailyDeclare tests.

This module provides an isolated SQLite store per test, a settable clock,
and a recording notification backend so the counter engine and reminder
scheduler can be exercised without touching real app data or timers.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from dailydeclare.clock import FixedClock
from dailydeclare.infra.database import create_session_factory
from dailydeclare.infra.repositories import SQLModelSettingsRepository
from dailydeclare.models import AppSetting  # noqa: F401  registers the table
from dailydeclare.models.notification import (
    NotificationContent,
    PermissionStatus,
    ScheduledNotification,
)
from dailydeclare.services.counter import CounterEngine
from dailydeclare.services.reminders import ReminderScheduler

# =============================================================================
# Fakes
# =============================================================================


class RecordingNotificationBackend:
    """In-memory notification backend that records every call."""

    def __init__(self, *, grant: bool = True, failing_ids: set[str] | None = None):
        self.grant = grant
        self.failing_ids = set(failing_ids or ())
        self.permission = PermissionStatus.UNDETERMINED
        self.live: dict[str, ScheduledNotification] = {}
        self.permission_requests = 0
        self.cancelled: list[str] = []
        self.running = False

    def get_permission_status(self) -> PermissionStatus:
        return self.permission

    def request_permission(self) -> PermissionStatus:
        self.permission_requests += 1
        self.permission = PermissionStatus.GRANTED if self.grant else PermissionStatus.DENIED
        return self.permission

    def schedule_daily(self, identifier: str, hour: int, minute: int, content: NotificationContent) -> None:
        if identifier in self.failing_ids:
            raise RuntimeError(f"platform refused {identifier}")
        self.live[identifier] = ScheduledNotification(identifier, hour, minute, content)

    def cancel(self, identifier: str) -> None:
        self.cancelled.append(identifier)
        self.live.pop(identifier, None)

    def cancel_all(self) -> None:
        for identifier in list(self.live):
            self.cancel(identifier)

    def list_scheduled(self) -> list[ScheduledNotification]:
        return list(self.live.values())

    def live_ids(self) -> set[str]:
        return set(self.live)

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one repositories receive in the app."""
    return create_session_factory(db_engine)


@pytest.fixture
def store(session_factory) -> SQLModelSettingsRepository:
    return SQLModelSettingsRepository(session_factory)


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to noon on 1 January 2024."""
    return FixedClock(date(2024, 1, 1))


@pytest.fixture
def counter(store, clock) -> CounterEngine:
    return CounterEngine(store, clock=clock)


@pytest.fixture
def backend() -> RecordingNotificationBackend:
    return RecordingNotificationBackend()


@pytest.fixture
def scheduler(store, backend) -> ReminderScheduler:
    return ReminderScheduler(store, backend)


@pytest.fixture
def make_backend():
    """Build extra recording backends with custom permission or failures."""
    return RecordingNotificationBackend


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so they do not outlive a test."""
    yield
    package_logger = logging.getLogger("dailydeclare")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

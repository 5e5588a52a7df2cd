"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .clock import Clock, SystemClock
from .config import BaseConfig
from .domain.notifications import NotificationBackend
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelSettingsRepository
from .scheduler import create_notification_backend
from .services.counter import CounterEngine
from .services.reminders import ReminderScheduler


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    session_factory: Callable[[], Session]
    settings_repo: SQLModelSettingsRepository
    clock: Clock
    notifications: NotificationBackend
    counter: CounterEngine
    reminders: ReminderScheduler

    def wipe_all_data(self) -> None:
        """Remove every stored key and every notification this app scheduled."""
        self.notifications.cancel_all()
        self.settings_repo.clear()


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Optional[Clock] = None,
    notifications: Optional[NotificationBackend] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    settings_repo = SQLModelSettingsRepository(session_factory)
    clock = clock or SystemClock()
    if notifications is None:
        notifications = create_notification_backend(config)

    return AppContext(
        config=config,
        session_factory=session_factory,
        settings_repo=settings_repo,
        clock=clock,
        notifications=notifications,
        counter=CounterEngine(settings_repo, clock=clock),
        reminders=ReminderScheduler(settings_repo, notifications),
    )

"""APScheduler-backed notification backend for daily reminders."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .models.notification import NotificationContent, PermissionStatus, ScheduledNotification

logger = logging.getLogger("dailydeclare.scheduler")

Deliver = Callable[[ScheduledNotification], None]

# Marks jobs this backend owns so other jobs on a shared scheduler are left alone.
_NOTIFICATION_KWARG = "notification"


def log_delivery(notification: ScheduledNotification) -> None:
    """Default delivery: surface the reminder through the log."""
    logger.info(
        f"Reminder due: {notification.content.title}",
        extra={"identifier": notification.identifier, "body": notification.content.body},
    )


class APSchedulerNotificationBackend:
    """Fires daily notifications from an APScheduler background scheduler.

    Jobs can be added before :meth:`start`; APScheduler keeps them pending
    until the scheduler runs.
    """

    def __init__(
        self,
        *,
        deliver: Deliver = log_delivery,
        allow_permission: bool = True,
        timezone: Optional[str] = None,
        scheduler: Optional[APScheduler] = None,
    ):
        """Initialize the backend.

        Args:
            deliver: Callable invoked on the scheduler thread when a reminder fires
            allow_permission: Whether a permission request is granted
            timezone: Time zone name for triggers; local zone when None
            scheduler: Pre-built scheduler to share with other jobs
        """
        self.deliver = deliver
        self.allow_permission = allow_permission
        self.timezone = timezone
        if scheduler is None:
            scheduler = APScheduler(timezone=timezone) if timezone else APScheduler()
        self.scheduler = scheduler
        self._permission = PermissionStatus.UNDETERMINED

    # Lifecycle ---------------------------------------------------------
    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler.running:
            logger.warning("Scheduler already running")
            return
        self.scheduler.start()
        logger.info("Notification scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Notification scheduler stopped")

    # Permission --------------------------------------------------------
    def get_permission_status(self) -> PermissionStatus:
        return self._permission

    def request_permission(self) -> PermissionStatus:
        self._permission = (
            PermissionStatus.GRANTED if self.allow_permission else PermissionStatus.DENIED
        )
        logger.info(f"Notification permission {self._permission.value}")
        return self._permission

    # Scheduling --------------------------------------------------------
    def schedule_daily(
        self, identifier: str, hour: int, minute: int, content: NotificationContent
    ) -> None:
        notification = ScheduledNotification(
            identifier=identifier, hour=hour, minute=minute, content=content
        )
        trigger = (
            CronTrigger(hour=hour, minute=minute, timezone=self.timezone)
            if self.timezone
            else CronTrigger(hour=hour, minute=minute)
        )
        # Pending jobs on a stopped scheduler ignore replace_existing.
        self._remove(identifier)
        self.scheduler.add_job(
            func=self._fire,
            trigger=trigger,
            kwargs={_NOTIFICATION_KWARG: notification},
            id=identifier,
            name=content.title or identifier,
            replace_existing=True,
            misfire_grace_time=300,
            coalesce=True,
        )
        logger.info(f"Scheduled {identifier} daily at {hour:02d}:{minute:02d}")

    def cancel(self, identifier: str) -> None:
        if self._remove(identifier):
            logger.info(f"Cancelled {identifier}")

    def _remove(self, identifier: str) -> bool:
        try:
            self.scheduler.remove_job(identifier)
        except JobLookupError:
            return False
        return True

    def cancel_all(self) -> None:
        for notification in self.list_scheduled():
            self.cancel(notification.identifier)

    def list_scheduled(self) -> list[ScheduledNotification]:
        return [
            job.kwargs[_NOTIFICATION_KWARG]
            for job in self.scheduler.get_jobs()
            if _NOTIFICATION_KWARG in job.kwargs
        ]

    def _fire(self, notification: ScheduledNotification) -> None:
        try:
            self.deliver(notification)
        except Exception as exc:
            logger.error(f"Reminder delivery failed for {notification.identifier}: {exc}", exc_info=True)


def create_notification_backend(config, *, deliver: Deliver = log_delivery, auto_start: bool = False):
    """Create and optionally start a notification backend from configuration.

    Args:
        config: Application configuration
        deliver: Delivery callable for fired reminders
        auto_start: Whether to start the scheduler immediately
    """
    backend = APSchedulerNotificationBackend(
        deliver=deliver,
        allow_permission=config.NOTIFICATIONS_ALLOWED,
        timezone=config.TIMEZONE,
    )
    if auto_start:
        backend.start()
    return backend


__all__ = ["APSchedulerNotificationBackend", "create_notification_backend", "log_delivery"]

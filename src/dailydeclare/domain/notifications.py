"""Notification backend protocol."""

from __future__ import annotations

from typing import Protocol

from ..models.notification import NotificationContent, PermissionStatus, ScheduledNotification


class NotificationBackend(Protocol):
    """Platform capability that fires recurring local notifications."""

    def get_permission_status(self) -> PermissionStatus:
        """Return the current permission without prompting."""
        ...

    def request_permission(self) -> PermissionStatus:
        """Ask for permission and return the resulting status."""
        ...

    def schedule_daily(
        self, identifier: str, hour: int, minute: int, content: NotificationContent
    ) -> None:
        """Schedule a notification firing every day at hour:minute."""
        ...

    def cancel(self, identifier: str) -> None:
        """Cancel one scheduled notification; unknown ids are ignored."""
        ...

    def cancel_all(self) -> None:
        """Cancel every notification this backend scheduled."""
        ...

    def list_scheduled(self) -> list[ScheduledNotification]:
        """Return all live scheduled notifications."""
        ...

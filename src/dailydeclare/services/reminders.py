"""Reminder persistence and reconciliation with the notification backend."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional

from ..domain.notifications import NotificationBackend
from ..domain.repositories import KeyValueStore
from ..errors import NotFound, StorageUnavailable
from ..logging_config import get_logger
from ..models.notification import NotificationContent, PermissionStatus
from ..models.reminder import DEFAULT_REMINDERS, Reminder, ReminderTemplate, ReminderTime

logger = get_logger(__name__)

KEY_REMINDERS = "reminders.items"
NOTIFICATION_PREFIX = "reminder:"
NOTIFICATION_KIND = "declaration_reminder"


def notification_id(reminder_id: str) -> str:
    """Identifier of the live notification scheduled for a reminder."""
    return f"{NOTIFICATION_PREFIX}{reminder_id}"


class ReconcileStatus(str, Enum):
    OK = "ok"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class ReconcileResult:
    status: ReconcileStatus
    scheduled: int = 0
    cancelled: int = 0
    failed: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status is ReconcileStatus.OK


class ReminderScheduler:
    """Keeps live daily notifications in step with the persisted reminders."""

    def __init__(self, store: KeyValueStore, backend: NotificationBackend):
        self.store = store
        self.backend = backend

    # Persistence -------------------------------------------------------
    def _load_document(self) -> Optional[tuple[dict[str, Reminder], dict[str, Any]]]:
        """Split the stored document into readable reminders and raw leftovers.

        Entries that no longer parse are kept verbatim so that saving the
        readable ones never drops them.
        """
        raw = self.store.get(KEY_REMINDERS)
        if raw is None:
            return None
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(f"Stored reminders are not valid JSON: {exc}")
            raise StorageUnavailable("Stored reminders are unreadable") from exc
        if not isinstance(records, dict):
            raise StorageUnavailable("Stored reminders are not a mapping of id to reminder")

        reminders: dict[str, Reminder] = {}
        unreadable: dict[str, Any] = {}
        for reminder_id, record in records.items():
            try:
                reminders[reminder_id] = Reminder.from_record({**record, "id": reminder_id})
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"Ignoring unreadable reminder {reminder_id}: {exc}")
                unreadable[reminder_id] = record
        return reminders, unreadable

    def _document(self) -> tuple[dict[str, Reminder], dict[str, Any]]:
        return self._load_document() or ({}, {})

    def _reminders(self) -> dict[str, Reminder]:
        return self._document()[0]

    def _save(self, reminders: dict[str, Reminder], unreadable: dict[str, Any]) -> None:
        payload = dict(unreadable)
        payload.update({rid: reminder.to_record() for rid, reminder in reminders.items()})
        self.store.set(KEY_REMINDERS, json.dumps(payload, sort_keys=True))

    # CRUD --------------------------------------------------------------
    def list_reminders(self) -> list[Reminder]:
        return sorted(self._reminders().values(), key=lambda r: (r.time, r.id))

    def get_reminder(self, reminder_id: str) -> Reminder:
        try:
            return self._reminders()[reminder_id]
        except KeyError:
            raise NotFound(f"Reminder {reminder_id} not found", key=reminder_id) from None

    def add_reminder(
        self, time: ReminderTime, title: str, body: str, *, sound: bool = True
    ) -> Reminder:
        """Persist a new enabled reminder; call :meth:`reconcile` to schedule it."""
        reminders, unreadable = self._document()
        reminder_id = uuid.uuid4().hex
        while reminder_id in reminders or reminder_id in unreadable:
            reminder_id = uuid.uuid4().hex
        reminder = Reminder(id=reminder_id, time=time, title=title, body=body, sound=sound)
        reminders[reminder_id] = reminder
        self._save(reminders, unreadable)
        logger.info(f"Added reminder {reminder_id} at {time.hour:02d}:{time.minute:02d}")
        return reminder

    def update_reminder(self, reminder: Reminder) -> Reminder:
        reminders, unreadable = self._document()
        if reminder.id not in reminders and reminder.id not in unreadable:
            raise NotFound(f"Reminder {reminder.id} not found", key=reminder.id)
        unreadable.pop(reminder.id, None)
        reminders[reminder.id] = reminder
        self._save(reminders, unreadable)
        logger.info(f"Updated reminder {reminder.id}", extra={"enabled": reminder.enabled})
        return reminder

    def delete_reminder(self, reminder_id: str) -> None:
        """Remove a reminder, including one whose stored record is unreadable."""
        reminders, unreadable = self._document()
        if reminder_id in reminders:
            del reminders[reminder_id]
        elif reminder_id in unreadable:
            del unreadable[reminder_id]
        else:
            raise NotFound(f"Reminder {reminder_id} not found", key=reminder_id)
        self._save(reminders, unreadable)
        logger.info(f"Deleted reminder {reminder_id}")

    def ensure_default_reminders(
        self, templates: Iterable[ReminderTemplate] = DEFAULT_REMINDERS
    ) -> list[Reminder]:
        """Seed the morning and evening reminders on first run only."""
        if self._load_document() is not None:
            return []
        reminders: dict[str, Reminder] = {}
        for template in templates:
            reminder_id = uuid.uuid4().hex
            reminders[reminder_id] = Reminder(
                id=reminder_id,
                time=template.time,
                title=template.title,
                body=template.body,
                sound=template.sound,
            )
        self._save(reminders, {})
        logger.info(f"Seeded {len(reminders)} default reminders")
        return sorted(reminders.values(), key=lambda r: (r.time, r.id))

    def set_all_enabled(self, enabled: bool) -> ReconcileResult:
        """Toggle every reminder, keeping the records, then reconcile."""
        reminders, unreadable = self._document()
        toggled = {rid: replace(reminder, enabled=enabled) for rid, reminder in reminders.items()}
        self._save(toggled, unreadable)
        logger.info(f"All reminders {'enabled' if enabled else 'disabled'}")
        return self.reconcile()

    # Reconciliation ----------------------------------------------------
    def reconcile(self) -> ReconcileResult:
        """Cancel our live notifications, then schedule every enabled reminder.

        Notifications from other sources are never touched. A reminder the
        backend refuses is logged and skipped; the rest are still scheduled.
        """
        reminders = self._reminders()
        cancelled = 0
        for live in self.backend.list_scheduled():
            if live.identifier.startswith(NOTIFICATION_PREFIX):
                try:
                    self.backend.cancel(live.identifier)
                    cancelled += 1
                except Exception as exc:
                    logger.warning(f"Could not cancel {live.identifier}: {exc}")

        if not self._ensure_permission():
            logger.warning("Notification permission denied; no reminders scheduled")
            return ReconcileResult(status=ReconcileStatus.PERMISSION_DENIED, cancelled=cancelled)

        scheduled = 0
        failed: list[str] = []
        for reminder in sorted(reminders.values(), key=lambda r: (r.time, r.id)):
            if not reminder.enabled:
                continue
            content = NotificationContent(
                title=reminder.title,
                body=reminder.body,
                sound=reminder.sound,
                data={"type": NOTIFICATION_KIND, "reminder_id": reminder.id},
            )
            try:
                self.backend.schedule_daily(
                    notification_id(reminder.id), reminder.time.hour, reminder.time.minute, content
                )
            except Exception as exc:
                logger.error(f"Failed to schedule reminder {reminder.id}: {exc}", exc_info=True)
                failed.append(reminder.id)
                continue
            scheduled += 1

        logger.info(
            f"Reconciled reminders: {scheduled} scheduled",
            extra={"cancelled": cancelled, "failed": failed},
        )
        return ReconcileResult(
            status=ReconcileStatus.OK,
            scheduled=scheduled,
            cancelled=cancelled,
            failed=tuple(failed),
        )

    def _ensure_permission(self) -> bool:
        status = PermissionStatus(self.backend.get_permission_status())
        if status is not PermissionStatus.GRANTED:
            status = PermissionStatus(self.backend.request_permission())
        return status is PermissionStatus.GRANTED


__all__ = [
    "KEY_REMINDERS",
    "NOTIFICATION_PREFIX",
    "ReconcileResult",
    "ReconcileStatus",
    "ReminderScheduler",
    "notification_id",
]

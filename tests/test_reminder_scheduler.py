"""Tests for reminder persistence and reconciliation."""

from __future__ import annotations

import json

import pytest

from dailydeclare.errors import NotFound, StorageUnavailable
from dailydeclare.models.notification import NotificationContent, PermissionStatus
from dailydeclare.models.reminder import DEFAULT_REMINDERS, ReminderTime
from dailydeclare.services.reminders import (
    KEY_REMINDERS,
    ReconcileStatus,
    ReminderScheduler,
    notification_id,
)


def _add(scheduler, hour=8, minute=0, title="Morning", body="Speak it out"):
    return scheduler.add_reminder(ReminderTime(hour, minute), title, body)


class TestReminderCrud:
    def test_add_persists_enabled_reminder(self, scheduler, store):
        reminder = _add(scheduler)

        assert reminder.enabled is True
        assert scheduler.get_reminder(reminder.id) == reminder
        stored = json.loads(store.get(KEY_REMINDERS))
        assert stored[reminder.id]["hour"] == 8

    def test_add_does_not_schedule(self, scheduler, backend):
        _add(scheduler)

        assert backend.live_ids() == set()

    def test_ids_are_unique(self, scheduler):
        ids = {_add(scheduler, hour=h).id for h in range(10)}

        assert len(ids) == 10

    def test_list_is_ordered_by_time(self, scheduler):
        _add(scheduler, hour=20, title="Evening")
        _add(scheduler, hour=6, minute=30, title="Dawn")
        _add(scheduler, hour=12, title="Noon")

        assert [r.title for r in scheduler.list_reminders()] == ["Dawn", "Noon", "Evening"]

    def test_update_replaces_reminder(self, scheduler):
        reminder = _add(scheduler)
        reminder.time = ReminderTime(9, 15)
        reminder.enabled = False

        scheduler.update_reminder(reminder)

        stored = scheduler.get_reminder(reminder.id)
        assert stored.time == ReminderTime(9, 15)
        assert stored.enabled is False

    def test_update_unknown_raises_not_found(self, scheduler):
        reminder = _add(scheduler)
        scheduler.delete_reminder(reminder.id)

        with pytest.raises(NotFound):
            scheduler.update_reminder(reminder)

    def test_delete_unknown_raises_not_found(self, scheduler):
        with pytest.raises(NotFound) as excinfo:
            scheduler.delete_reminder("missing")

        assert excinfo.value.key == "missing"

    def test_get_unknown_raises_not_found(self, scheduler):
        with pytest.raises(NotFound):
            scheduler.get_reminder("missing")

    def test_corrupt_store_is_reported(self, scheduler, store):
        store.set(KEY_REMINDERS, "{not json")

        with pytest.raises(StorageUnavailable):
            scheduler.list_reminders()


class TestUnreadableRecords:
    LEGACY = {"hour": 25, "minute": 0, "title": "Legacy", "body": "", "enabled": True}

    @pytest.fixture()
    def seeded(self, scheduler, store):
        good = {"hour": 8, "minute": 0, "title": "Morning", "body": "", "enabled": True}
        store.set(KEY_REMINDERS, json.dumps({"legacy": self.LEGACY, "good": good}))
        return scheduler

    def test_unreadable_entry_is_hidden_from_listing(self, seeded):
        assert [r.id for r in seeded.list_reminders()] == ["good"]

    @pytest.mark.parametrize(
        "change",
        [
            lambda s: s.add_reminder(ReminderTime(9, 0), "Later", ""),
            lambda s: s.update_reminder(s.get_reminder("good")),
            lambda s: s.delete_reminder("good"),
            lambda s: s.set_all_enabled(False),
        ],
        ids=["add", "update", "delete", "disable_all"],
    )
    def test_changes_keep_unreadable_entry(self, seeded, store, change):
        change(seeded)

        stored = json.loads(store.get(KEY_REMINDERS))
        assert stored["legacy"] == self.LEGACY

    def test_unreadable_entry_is_not_scheduled(self, seeded, backend):
        result = seeded.reconcile()

        assert result.scheduled == 1
        assert backend.live_ids() == {notification_id("good")}

    def test_unreadable_entry_can_be_deleted(self, seeded, store):
        seeded.delete_reminder("legacy")

        assert "legacy" not in json.loads(store.get(KEY_REMINDERS))

    def test_string_flag_is_not_read_as_enabled(self, scheduler, store):
        record = {"hour": 8, "minute": 0, "title": "Morning", "body": "", "enabled": "false"}
        store.set(KEY_REMINDERS, json.dumps({"quoted": record}))

        assert scheduler.list_reminders() == []
        scheduler.add_reminder(ReminderTime(9, 0), "Later", "")
        assert json.loads(store.get(KEY_REMINDERS))["quoted"] == record


class TestReconcile:
    def test_schedules_enabled_reminders(self, scheduler, backend):
        morning = _add(scheduler, hour=8)
        evening = _add(scheduler, hour=20, minute=30, title="Evening")
        off = _add(scheduler, hour=12)
        off.enabled = False
        scheduler.update_reminder(off)

        result = scheduler.reconcile()

        assert result.status is ReconcileStatus.OK
        assert result.scheduled == 2
        assert backend.live_ids() == {notification_id(morning.id), notification_id(evening.id)}
        live = backend.live[notification_id(evening.id)]
        assert (live.hour, live.minute) == (20, 30)
        assert live.content.title == "Evening"
        assert live.content.data["reminder_id"] == evening.id

    def test_reconcile_twice_is_idempotent(self, scheduler, backend):
        _add(scheduler, hour=8)
        _add(scheduler, hour=20)

        scheduler.reconcile()
        first = {k: (v.hour, v.minute, v.content) for k, v in backend.live.items()}
        scheduler.reconcile()
        second = {k: (v.hour, v.minute, v.content) for k, v in backend.live.items()}

        assert first == second

    def test_deleted_reminder_is_unscheduled(self, scheduler, backend):
        keep = _add(scheduler, hour=8)
        drop = _add(scheduler, hour=20)
        scheduler.reconcile()

        scheduler.delete_reminder(drop.id)
        scheduler.reconcile()

        assert backend.live_ids() == {notification_id(keep.id)}

    def test_edited_time_replaces_stale_schedule(self, scheduler, backend):
        reminder = _add(scheduler, hour=8)
        scheduler.reconcile()

        reminder.time = ReminderTime(7, 45)
        scheduler.update_reminder(reminder)
        scheduler.reconcile()

        live = backend.live[notification_id(reminder.id)]
        assert (live.hour, live.minute) == (7, 45)

    def test_foreign_notifications_untouched(self, scheduler, backend):
        backend.schedule_daily("podcast-episode", 9, 0, NotificationContent("New episode", ""))
        _add(scheduler)

        scheduler.reconcile()
        scheduler.reconcile()

        assert "podcast-episode" in backend.live_ids()
        assert "podcast-episode" not in backend.cancelled

    def test_permission_denied_schedules_nothing(self, store, make_backend):
        backend = make_backend(grant=False)
        scheduler = ReminderScheduler(store, backend)
        _add(scheduler)

        result = scheduler.reconcile()

        assert result.status is ReconcileStatus.PERMISSION_DENIED
        assert not result.ok
        assert result.scheduled == 0
        assert backend.live_ids() == set()

    def test_permission_denied_still_cancels_stale_schedules(self, store, make_backend):
        backend = make_backend()
        scheduler = ReminderScheduler(store, backend)
        reminder = _add(scheduler)
        scheduler.reconcile()

        backend.grant = False
        backend.permission = PermissionStatus.DENIED
        result = scheduler.reconcile()

        assert result.status is ReconcileStatus.PERMISSION_DENIED
        assert notification_id(reminder.id) not in backend.live_ids()

    def test_permission_requested_only_when_not_granted(self, scheduler, backend):
        _add(scheduler)

        scheduler.reconcile()
        scheduler.reconcile()

        assert backend.permission_requests == 1

    def test_partial_failure_schedules_the_rest(self, store, make_backend):
        backend = make_backend()
        scheduler = ReminderScheduler(store, backend)
        good = _add(scheduler, hour=8)
        bad = _add(scheduler, hour=9)
        later = _add(scheduler, hour=21)
        backend.failing_ids = {notification_id(bad.id)}

        result = scheduler.reconcile()

        assert result.ok
        assert result.scheduled == 2
        assert result.failed == (bad.id,)
        assert backend.live_ids() == {notification_id(good.id), notification_id(later.id)}


class TestDefaultsAndToggles:
    def test_defaults_seeded_once(self, scheduler):
        seeded = scheduler.ensure_default_reminders()

        assert [r.time for r in seeded] == [t.time for t in DEFAULT_REMINDERS]
        assert scheduler.ensure_default_reminders() == []
        assert len(scheduler.list_reminders()) == 2

    def test_defaults_not_reseeded_after_user_deletes_them(self, scheduler):
        for reminder in scheduler.ensure_default_reminders():
            scheduler.delete_reminder(reminder.id)

        assert scheduler.ensure_default_reminders() == []
        assert scheduler.list_reminders() == []

    def test_disable_all_keeps_records(self, scheduler, backend):
        scheduler.ensure_default_reminders()
        scheduler.reconcile()

        result = scheduler.set_all_enabled(False)

        assert result.scheduled == 0
        assert backend.live_ids() == set()
        reminders = scheduler.list_reminders()
        assert len(reminders) == 2
        assert all(not r.enabled for r in reminders)

    def test_enable_all_reschedules(self, scheduler, backend):
        scheduler.ensure_default_reminders()
        scheduler.set_all_enabled(False)

        result = scheduler.set_all_enabled(True)

        assert result.scheduled == 2
        assert len(backend.live_ids()) == 2

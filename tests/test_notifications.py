from datetime import datetime, time, timedelta

import pytest

from conftest import NOW, TODAY, make_course, make_inventory, make_medicine

from medreminder.core.config import Settings
from medreminder.courses.schemas import Frequency, WhenToTake
from medreminder.notifications.manager import (
    MedicineRef,
    NotificationManager,
    NotificationOutbox,
    TriggerKind,
    reminder_body,
)
from medreminder.notifications.responses import (
    NotificationAction,
    NotificationResponse,
    extract_medicine_names,
    handle_notification_response,
)


def _courses():
    antibiotic = make_medicine("Amoxicillin", frequency=Frequency.THRICE_DAILY, when_to_take=WhenToTake.AFTER_MEALS)
    vitamin = make_medicine("Vitamin D", when_to_take=WhenToTake.AFTER_MEALS)
    return [make_course("Antibiotics", duration=2, start_date=TODAY, medicines=[antibiotic, vitamin])]


def test_plan_groups_medicines_by_time_and_skips_the_past(notifications, user):
    requests = notifications.plan_daily_reminders(_courses(), user, now=NOW)

    assert [r.identifier for r in requests] == [
        "notification_0_13:30",
        "notification_0_20:30",
        "notification_1_08:30",
        "notification_1_13:30",
        "notification_1_20:30",
    ]
    by_id = {r.identifier: r for r in requests}
    morning = by_id["notification_1_08:30"]
    assert morning.body == "Time to take: Amoxicillin, Vitamin D"
    assert morning.title == "Medicine Reminder"
    assert morning.trigger.kind == TriggerKind.AT
    assert morning.trigger.fire_at == datetime(2025, 3, 11, 8, 30)
    assert len(morning.medicine_refs) == 2
    assert by_id["notification_0_13:30"].body == "Time to take: Amoxicillin"


def test_plan_ignores_finished_and_future_days(notifications, user):
    finished = make_course("Old", duration=3, start_date=TODAY - timedelta(days=5))
    later = make_course("Later", duration=1, start_date=TODAY + timedelta(days=2))

    assert notifications.plan_daily_reminders([finished], user, now=NOW) == []

    requests = notifications.plan_daily_reminders([later], user, now=NOW)
    assert [r.identifier for r in requests] == ["notification_2_08:30"]


def test_plan_for_undated_course_counts_from_today(notifications, user):
    course = make_course("Vitamins", duration=2, start_date=None)

    requests = notifications.plan_daily_reminders([course], user, now=NOW)

    assert [r.identifier for r in requests] == ["notification_1_08:30"]


def test_plan_without_profile_is_empty(notifications):
    assert notifications.plan_daily_reminders(_courses(), None, now=NOW) == []


def test_reschedule_replaces_everything_pending(notifications, user):
    notifications.schedule_reminder(NOW + timedelta(hours=1), ["Stale"], identifier="stale")

    requests = notifications.reschedule(_courses(), user, now=NOW)

    identifiers = {r.identifier for r in notifications.pending()}
    assert "stale" not in identifiers
    assert "weekly_inventory_reminder" in identifiers
    assert "daily_low_stock_reminder" not in identifiers
    assert len(requests) == 6

    weekly = next(r for r in requests if r.identifier == "weekly_inventory_reminder")
    assert weekly.trigger.kind == TriggerKind.WEEKLY
    assert weekly.trigger.weekday == 0
    assert weekly.trigger.at_time == time(9, 0)


def test_daily_low_stock_reminder_bodies(notifications):
    inhaler = make_medicine("Inhaler", inventory=make_inventory(current_count=2, unit_type="Inhalers"))
    course = make_course(medicines=[inhaler])

    single = notifications.schedule_daily_low_stock_reminder([course])
    assert single.body == "You only have 2 Inhalers of Inhaler left. Please refill soon."
    assert single.trigger.kind == TriggerKind.DAILY
    assert single.trigger.at_time == time(9, 0)

    course.medicines.append(make_medicine("Zinc", inventory=make_inventory(current_count=1)))
    multiple = notifications.schedule_daily_low_stock_reminder([course])
    assert multiple.body == "Multiple medicines are running low: Inhaler, Zinc. Please check your inventory."
    assert len([r for r in notifications.pending() if r.identifier == "daily_low_stock_reminder"]) == 1

    healthy = make_course(medicines=[make_medicine(inventory=make_inventory())])
    assert notifications.schedule_daily_low_stock_reminder([healthy]) is None


def test_snooze_fires_after_configured_delay(notifications):
    refs = [MedicineRef(course_id=make_course().id, medicine_id=make_medicine().id)]

    request = notifications.snooze("Time to take: Amoxicillin", refs)

    assert request.identifier.startswith("snooze_")
    assert request.title == "Reminder: Medicine Time"
    assert request.trigger.fire_at == NOW + timedelta(minutes=10)
    assert request.medicine_refs == refs


def test_dispatch_failure_is_logged_not_raised(caplog):
    class BrokenOutbox(NotificationOutbox):
        def add(self, request):
            raise RuntimeError("device unavailable")

    manager = NotificationManager(BrokenOutbox(), clock=lambda: NOW)

    request = manager.schedule_low_stock_alert("Amoxicillin", "Antibiotics", 3, "Pills")

    assert request.identifier.startswith("inventory_Amoxicillin_")
    assert manager.pending() == []
    assert "Error scheduling notification" in caplog.text


def test_reminder_body_and_name_extraction():
    body = reminder_body(["Amoxicillin", "Vitamin D"])

    assert body == "Time to take: Amoxicillin, Vitamin D"
    assert extract_medicine_names(body) == ["Amoxicillin", "Vitamin D"]
    assert extract_medicine_names("Reminder: Medicine Time Amoxicillin") == ["Amoxicillin"]
    assert reminder_body([]) == "Time to take your medicine"


@pytest.mark.anyio
async def test_mark_taken_by_name(store, ledger, notifications):
    courses = _courses()
    async with store.lock:
        await store.save_courses(courses)

    result = await handle_notification_response(
        NotificationResponse(
            action=NotificationAction.MARK_TAKEN,
            identifier="notification_0_08:30",
            body="Time to take: Amoxicillin, Vitamin D",
        ),
        ledger,
        notifications,
        TODAY,
    )

    assert len(result.updated) == 2
    saved = await store.get_course(courses[0].id)
    assert [m.status(TODAY) for m in saved.medicines] == ["taken", "taken"]


@pytest.mark.anyio
async def test_mark_taken_by_refs_only_touches_referenced_medicine(store, ledger, notifications):
    courses = _courses()
    duplicate = make_course("Second course", medicines=[make_medicine("Amoxicillin")])
    async with store.lock:
        await store.save_courses(courses + [duplicate])
    target = courses[0].medicines[0]

    result = await handle_notification_response(
        NotificationResponse(
            action=NotificationAction.MARK_TAKEN,
            body="Time to take: Amoxicillin",
            medicine_refs=[MedicineRef(course_id=courses[0].id, medicine_id=target.id)],
        ),
        ledger,
        notifications,
        TODAY,
    )

    assert [c.medicine_id for c in result.updated] == [target.id]
    other = await store.get_course(duplicate.id)
    assert other.medicines[0].status(TODAY) is None


@pytest.mark.anyio
async def test_remind_later_snoozes(ledger, notifications):
    result = await handle_notification_response(
        NotificationResponse(action=NotificationAction.REMIND_LATER, body="Time to take: Amoxicillin"),
        ledger,
        notifications,
        TODAY,
    )

    assert result.updated == []
    assert result.snoozed_identifier.startswith("snooze_")
    assert [r.body for r in notifications.pending()] == ["Time to take: Amoxicillin"]


def test_default_clock_uses_the_managers_time_zone(monkeypatch):
    zones = []

    def fake_local_now(tz_name=None):
        zones.append(tz_name)
        return NOW

    monkeypatch.setattr("medreminder.notifications.manager.local_now", fake_local_now)
    manager = NotificationManager(NotificationOutbox(), settings=Settings(timezone="Asia/Tokyo"))

    request = manager.snooze("Time to take: Amoxicillin")

    assert zones == ["Asia/Tokyo"]
    assert request.trigger.fire_at == NOW + timedelta(minutes=10)

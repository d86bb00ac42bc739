import enum
import logging
import uuid
from datetime import datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from medreminder.core.clock import local_now
from medreminder.core.config import Settings, settings as default_settings
from medreminder.courses.schemas import MedicineCourse
from medreminder.scheduling.occurrences import covers
from medreminder.scheduling.times import notification_times, occurrence_times, parse_time
from medreminder.users.schemas import UserProfileBase

logger = logging.getLogger(__name__)

DAILY_REMINDER = "DAILY_REMINDER"
INVENTORY_ALERT = "INVENTORY_ALERT"

REMINDER_TITLE = "Medicine Reminder"
SNOOZE_TITLE = "Reminder: Medicine Time"
REMINDER_PREFIX = "Time to take: "


class TriggerKind(str, enum.Enum):
    AT = "at"
    DAILY = "daily"
    WEEKLY = "weekly"


class NotificationTrigger(BaseModel):
    kind: TriggerKind
    fire_at: Optional[datetime] = None
    at_time: Optional[time] = None
    # Monday = 0
    weekday: Optional[int] = None


class MedicineRef(BaseModel):
    course_id: uuid.UUID
    medicine_id: uuid.UUID


class NotificationRequest(BaseModel):
    identifier: str
    title: str
    body: str
    category: Optional[str] = None
    trigger: NotificationTrigger
    medicine_refs: List[MedicineRef] = Field(default_factory=list)


class NotificationOutbox:
    """Pending notification requests waiting for the device to pick them up.

    Adding a request with an identifier that is already pending replaces it.
    """

    def __init__(self):
        self._pending: Dict[str, NotificationRequest] = {}

    def add(self, request: NotificationRequest) -> None:
        self._pending[request.identifier] = request

    def remove(self, identifier: str) -> None:
        self._pending.pop(identifier, None)

    def remove_all_pending(self) -> None:
        self._pending.clear()

    def pending(self) -> List[NotificationRequest]:
        return list(self._pending.values())


def reminder_body(medicine_names: Sequence[str]) -> str:
    if medicine_names:
        return REMINDER_PREFIX + ", ".join(medicine_names)
    return "Time to take your medicine"


class NotificationManager:
    """Turns schedule decisions into notification requests.

    Created once by the application and handed to whoever needs to send
    alerts. Delivery is fire-and-forget: a failure to queue a request is
    logged and never reaches the caller.
    """

    def __init__(
        self,
        outbox: NotificationOutbox,
        settings: Settings = default_settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.outbox = outbox
        self.settings = settings
        # "Now" is read in the zone of the settings this manager was given
        self.clock = clock or (lambda: local_now(self.settings.timezone))

    def _dispatch(self, request: NotificationRequest) -> bool:
        try:
            self.outbox.add(request)
        except Exception:
            logger.exception("Error scheduling notification %s", request.identifier)
            return False
        logger.debug("Scheduled notification %s: %s", request.identifier, request.body)
        return True

    def pending(self) -> List[NotificationRequest]:
        return self.outbox.pending()

    # ------------------------------------------------------------------
    # One-off requests
    # ------------------------------------------------------------------

    def schedule_reminder(
        self,
        fire_at: datetime,
        medicine_names: Sequence[str],
        refs: Iterable[MedicineRef] = (),
        identifier: Optional[str] = None,
    ) -> NotificationRequest:
        request = NotificationRequest(
            identifier=identifier or f"reminder_{uuid.uuid4()}",
            title=REMINDER_TITLE,
            body=reminder_body(medicine_names),
            category=DAILY_REMINDER,
            trigger=NotificationTrigger(kind=TriggerKind.AT, fire_at=fire_at),
            medicine_refs=list(refs),
        )
        self._dispatch(request)
        return request

    def schedule_low_stock_alert(
        self,
        medicine_name: str,
        course_name: str,
        remaining_count: int,
        unit_label: str,
    ) -> NotificationRequest:
        fire_at = self.clock() + timedelta(seconds=self.settings.low_stock_alert_delay_seconds)
        request = NotificationRequest(
            identifier=f"inventory_{medicine_name}_{uuid.uuid4()}",
            title="Low Medicine Inventory",
            body=(
                f"You only have {remaining_count} {unit_label} of {medicine_name} "
                f"left in your {course_name} course."
            ),
            category=INVENTORY_ALERT,
            trigger=NotificationTrigger(kind=TriggerKind.AT, fire_at=fire_at),
        )
        self._dispatch(request)
        logger.info("Low stock alert for %s (%d %s left)", medicine_name, remaining_count, unit_label)
        return request

    def snooze(self, body: str, refs: Iterable[MedicineRef] = ()) -> NotificationRequest:
        fire_at = self.clock() + timedelta(minutes=self.settings.snooze_minutes)
        request = NotificationRequest(
            identifier=f"snooze_{uuid.uuid4()}",
            title=SNOOZE_TITLE,
            body=body,
            category=DAILY_REMINDER,
            trigger=NotificationTrigger(kind=TriggerKind.AT, fire_at=fire_at),
            medicine_refs=list(refs),
        )
        self._dispatch(request)
        logger.info("Snoozed notification for %d minutes", self.settings.snooze_minutes)
        return request

    # ------------------------------------------------------------------
    # Repeating inventory reminders
    # ------------------------------------------------------------------

    def schedule_daily_low_stock_reminder(
        self, courses: Iterable[MedicineCourse]
    ) -> Optional[NotificationRequest]:
        low = [
            (course, medicine)
            for course in courses
            for medicine in course.medicines
            if medicine.inventory
            and medicine.inventory.tracking_enabled
            and medicine.inventory.is_low_stock
            and medicine.inventory.notify_when_low
        ]
        if not low:
            return None

        if len(low) == 1:
            _, medicine = low[0]
            body = (
                f"You only have {medicine.inventory.current_count} {medicine.inventory.unit_type.value} "
                f"of {medicine.name} left. Please refill soon."
            )
        else:
            names = ", ".join(medicine.name for _, medicine in low)
            body = f"Multiple medicines are running low: {names}. Please check your inventory."

        request = NotificationRequest(
            identifier="daily_low_stock_reminder",
            title="Medicine Refill Reminder",
            body=body,
            trigger=NotificationTrigger(
                kind=TriggerKind.DAILY,
                at_time=time(self.settings.low_stock_reminder_hour, 0),
            ),
            medicine_refs=[MedicineRef(course_id=c.id, medicine_id=m.id) for c, m in low],
        )
        self._dispatch(request)
        return request

    def schedule_weekly_inventory_reminder(self) -> NotificationRequest:
        request = NotificationRequest(
            identifier="weekly_inventory_reminder",
            title="Weekly Medicine Inventory Check",
            body=(
                "It's time to check your medicine inventory. "
                "Make sure you have enough medication for the week."
            ),
            trigger=NotificationTrigger(
                kind=TriggerKind.WEEKLY,
                at_time=time(self.settings.inventory_check_hour, 0),
                weekday=self.settings.inventory_check_weekday,
            ),
        )
        self._dispatch(request)
        return request

    # ------------------------------------------------------------------
    # Full plan
    # ------------------------------------------------------------------

    def plan_daily_reminders(
        self,
        courses: Sequence[MedicineCourse],
        user: Optional[UserProfileBase],
        now: Optional[datetime] = None,
    ) -> List[NotificationRequest]:
        """One request per (day, clock time) that still lies ahead.

        A dated course contributes on the days it covers; an undated one for
        ``duration`` days counted from today.
        """
        now = now or self.clock()
        today = now.date()
        medicines = [m for c in courses for m in c.medicines]
        timings = notification_times(medicines, user)
        if not timings:
            return []

        horizon = 0
        for course in courses:
            if course.start_date is None:
                horizon = max(horizon, course.duration)
            else:
                horizon = max(horizon, (course.end_date - today).days)

        requests = []
        for offset in range(horizon):
            day = today + timedelta(days=offset)
            for at in timings:
                fire_at = datetime.combine(day, parse_time(at))
                if fire_at <= now:
                    continue

                due = [
                    (course, medicine)
                    for course in courses
                    if (covers(course, day) if course.start_date else offset < course.duration)
                    for medicine in course.medicines
                    if at in occurrence_times(medicine, user)
                ]
                if not due:
                    continue

                requests.append(self.schedule_reminder(
                    fire_at,
                    [medicine.name for _, medicine in due],
                    refs=[MedicineRef(course_id=c.id, medicine_id=m.id) for c, m in due],
                    identifier=f"notification_{offset}_{at}",
                ))
        return requests

    def reschedule(
        self,
        courses: Sequence[MedicineCourse],
        user: Optional[UserProfileBase],
        now: Optional[datetime] = None,
    ) -> List[NotificationRequest]:
        """Drop everything pending and plan reminders from the current state."""
        self.outbox.remove_all_pending()
        requests = self.plan_daily_reminders(courses, user, now)

        low_stock = self.schedule_daily_low_stock_reminder(courses)
        if low_stock:
            requests.append(low_stock)
        requests.append(self.schedule_weekly_inventory_reminder())

        logger.info("Calculated %d notification requests", len(requests))
        return requests

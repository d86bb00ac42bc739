import logging
import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel

from medreminder.courses.inventory import consume_dose, is_taken_transition, needs_low_stock_alert
from medreminder.courses.schemas import Medicine, date_key, normalize_status
from medreminder.courses.store import CourseStore
from medreminder.notifications.manager import NotificationManager

logger = logging.getLogger(__name__)


class StatusChange(BaseModel):
    course_id: uuid.UUID
    medicine_id: uuid.UUID
    on_date: date
    previous: Optional[str] = None
    status: str
    inventory_decremented: bool = False
    remaining_count: Optional[int] = None
    low_stock_alert: bool = False


def status_for(medicine: Medicine, day: date) -> Optional[str]:
    """Recorded status for ``day``; None means nothing was recorded."""
    return medicine.status(day)


class DoseLedger:
    """The only writer of per-date dose statuses."""

    def __init__(self, store: CourseStore, notifications: NotificationManager):
        self.store = store
        self.notifications = notifications

    async def update_status(
        self,
        course_id: uuid.UUID,
        medicine_id: uuid.UUID,
        status: str,
        on_date: date,
    ) -> Optional[StatusChange]:
        """Record ``status`` for the medicine on ``on_date`` (last writer wins).

        Unknown course or medicine ids are ignored and return None. Moving
        into "taken" consumes one unit of tracked inventory and may queue a
        low-stock alert. A blank status is rejected with ValueError.
        """
        status = normalize_status(status)
        if not status:
            raise ValueError("status must not be blank")
        key = date_key(on_date)

        async with self.store.lock:
            courses = await self.store.load_courses()
            course = next((c for c in courses if c.id == course_id), None)
            medicine = course.find_medicine(medicine_id) if course else None
            if medicine is None:
                logger.debug("No medicine %s in course %s, status not recorded", medicine_id, course_id)
                return None

            previous = medicine.status_by_date.get(key)
            medicine.status_by_date[key] = status

            decremented = False
            if is_taken_transition(previous, status):
                decremented = consume_dose(medicine)

            await self.store.save_courses(courses)

        alert = decremented and needs_low_stock_alert(medicine)
        if alert:
            self.notifications.schedule_low_stock_alert(
                medicine_name=medicine.name,
                course_name=course.name,
                remaining_count=medicine.inventory.current_count,
                unit_label=medicine.inventory.unit_type.value,
            )

        logger.info("Marked %s as %s for %s (was %s)", medicine.name, status, key, previous)
        return StatusChange(
            course_id=course.id,
            medicine_id=medicine.id,
            on_date=on_date,
            previous=previous,
            status=status,
            inventory_decremented=decremented,
            remaining_count=medicine.inventory.current_count if medicine.inventory else None,
            low_stock_alert=alert,
        )

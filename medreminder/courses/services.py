import logging
import uuid
from datetime import date
from typing import List, Optional

from medreminder.courses.inventory import needs_low_stock_alert, refill
from medreminder.courses.schemas import (
    CourseCreate,
    CourseUpdate,
    Medicine,
    MedicineCourse,
    MedicineInventory,
)
from medreminder.courses.store import CourseStore
from medreminder.notifications.manager import NotificationManager, NotificationRequest

logger = logging.getLogger(__name__)


class CourseService:
    """Course add/edit/delete flows; every change re-plans the reminders."""

    def __init__(self, store: CourseStore, notifications: NotificationManager):
        self.store = store
        self.notifications = notifications

    async def reschedule_notifications(self) -> List[NotificationRequest]:
        courses = await self.store.load_courses()
        user = await self.store.load_user_profile()
        return self.notifications.reschedule(courses, user)

    async def create_course(self, data: CourseCreate, today: date) -> MedicineCourse:
        course = MedicineCourse(
            name=data.name,
            duration=data.duration,
            start_date=data.start_date or today,
            medicines=[m.to_medicine() for m in data.medicines],
        )
        async with self.store.lock:
            await self.store.save_courses([course])

        logger.info("Created course %s with %d medicines", course.name, len(course.medicines))
        await self.reschedule_notifications()
        return course

    async def update_course(self, course_id: uuid.UUID, data: CourseUpdate) -> Optional[MedicineCourse]:
        async with self.store.lock:
            course = await self.store.get_course(course_id)
            if course is None:
                return None

            if data.name is not None:
                course.name = data.name
            if data.duration is not None:
                course.duration = data.duration
            if data.medicines is not None:
                # Edited medicines keep the doses already recorded for them;
                # ids from other courses or repeated in the payload are not reused
                medicines = []
                for m in data.medicines:
                    existing = course.find_medicine(m.id) if m.id else None
                    if existing is not None and any(e.id == existing.id for e in medicines):
                        existing = None
                    medicines.append(m.to_medicine(existing))
                course.medicines = medicines

            await self.store.save_courses([course])

        await self.reschedule_notifications()
        return course

    async def delete_course(self, course_id: uuid.UUID) -> bool:
        async with self.store.lock:
            deleted = await self.store.delete_course(course_id)
        if deleted:
            logger.info("Deleted course %s", course_id)
            await self.reschedule_notifications()
        return deleted

    async def delete_medicine(self, course_id: uuid.UUID, medicine_id: uuid.UUID) -> Optional[MedicineCourse]:
        async with self.store.lock:
            course = await self.store.get_course(course_id)
            if course is None or course.find_medicine(medicine_id) is None:
                return None
            course.medicines = [m for m in course.medicines if m.id != medicine_id]
            await self.store.save_courses([course])

        await self.reschedule_notifications()
        return course

    async def update_inventory(
        self,
        course_id: uuid.UUID,
        medicine_id: uuid.UUID,
        inventory: MedicineInventory,
    ) -> Optional[Medicine]:
        async with self.store.lock:
            course = await self.store.get_course(course_id)
            medicine = course.find_medicine(medicine_id) if course else None
            if medicine is None:
                return None
            medicine.inventory = inventory.model_copy()
            await self.store.save_courses([course])

        logger.info(
            "Saved inventory for %s: %d/%d %s",
            medicine.name, inventory.current_count, inventory.full_pack_count, inventory.unit_type.value,
        )
        if needs_low_stock_alert(medicine):
            self.notifications.schedule_low_stock_alert(
                medicine_name=medicine.name,
                course_name=course.name,
                remaining_count=inventory.current_count,
                unit_label=inventory.unit_type.value,
            )
        return medicine

    async def refill_inventory(
        self,
        course_id: uuid.UUID,
        medicine_id: uuid.UUID,
        today: date,
    ) -> Optional[Medicine]:
        async with self.store.lock:
            course = await self.store.get_course(course_id)
            medicine = course.find_medicine(medicine_id) if course else None
            if medicine is None or not refill(medicine, today):
                return None
            await self.store.save_courses([course])

        logger.info("Refilled %s to %d", medicine.name, medicine.inventory.current_count)
        return medicine

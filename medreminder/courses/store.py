import asyncio
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from medreminder.core.errors import PersistenceError
from medreminder.courses.schemas import Medicine, MedicineCourse, MedicineInventory
from medreminder.db import models
from medreminder.users import crud as user_crud
from medreminder.users.schemas import UserProfileRead

logger = logging.getLogger(__name__)


def _to_domain(record: models.MedicineCourse) -> MedicineCourse:
    return MedicineCourse(
        id=record.id,
        name=record.name,
        duration=record.duration,
        start_date=record.start_date,
        medicines=[
            Medicine(
                id=m.id,
                name=m.name,
                frequency=m.frequency,
                timing=m.timing,
                when_to_take=m.when_to_take,
                custom_time=m.custom_time,
                x_minutes=m.x_minutes,
                x_hours=m.x_hours,
                status_by_date=dict(m.status_by_date or {}),
                inventory=MedicineInventory.model_validate(m.inventory) if m.inventory else None,
            )
            for m in record.medicines
        ],
    )


def _to_record(course: MedicineCourse) -> models.MedicineCourse:
    return models.MedicineCourse(
        id=course.id,
        name=course.name,
        duration=course.duration,
        start_date=course.start_date,
        medicines=[
            models.Medicine(
                id=m.id,
                course_id=course.id,
                position=position,
                name=m.name,
                frequency=m.frequency.value,
                timing=m.timing.value,
                when_to_take=m.when_to_take.value,
                custom_time=m.custom_time,
                x_minutes=m.x_minutes,
                x_hours=m.x_hours,
                status_by_date=dict(m.status_by_date),
                inventory=m.inventory.model_dump(mode="json") if m.inventory else None,
            )
            for position, m in enumerate(course.medicines)
        ],
    )


class CourseStore:
    """Loads and saves the whole course collection.

    ``lock`` is the single owner of the collection: every load-modify-save
    cycle must hold it so concurrent updates cannot drop each other's writes.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker
        self.lock = asyncio.Lock()

    async def load_courses(self) -> List[MedicineCourse]:
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(
                    select(models.MedicineCourse)
                    .options(selectinload(models.MedicineCourse.medicines))
                    .order_by(models.MedicineCourse.created_at)
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Error loading courses")
            raise PersistenceError("Failed to load courses") from e

        courses = []
        for record in records:
            try:
                courses.append(_to_domain(record))
            except ValidationError as e:
                # Corrupt rows are skipped, the rest of the collection still loads
                logger.error("Skipping course %s that failed to decode: %s", record.id, e)
        logger.debug("Loaded %d courses", len(courses))
        return courses

    async def load_user_profile(self) -> Optional[UserProfileRead]:
        async with self._sessionmaker() as session:
            return await user_crud.get_profile(session)

    async def get_course(self, course_id: uuid.UUID) -> Optional[MedicineCourse]:
        for course in await self.load_courses():
            if course.id == course_id:
                return course
        return None

    async def save_courses(self, courses: List[MedicineCourse]) -> None:
        """Write every course in ``courses``; courses not listed are left alone."""
        try:
            async with self._sessionmaker() as session:
                for course in courses:
                    await session.merge(_to_record(course))
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Error saving courses")
            raise PersistenceError("Failed to save courses") from e
        logger.info("Courses saved successfully: %d courses", len(courses))

    async def delete_course(self, course_id: uuid.UUID) -> bool:
        try:
            async with self._sessionmaker() as session:
                await session.execute(
                    delete(models.Medicine).where(models.Medicine.course_id == course_id)
                )
                result = await session.execute(
                    delete(models.MedicineCourse).where(models.MedicineCourse.id == course_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Error deleting course %s", course_id)
            raise PersistenceError("Failed to delete course") from e
        return result.rowcount > 0

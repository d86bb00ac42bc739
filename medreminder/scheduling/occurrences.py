import calendar
import uuid
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel

from medreminder.courses.schemas import DoseStatus, Medicine, MedicineCourse, is_missed, is_taken
from medreminder.scheduling.times import occurrence_times
from medreminder.users.schemas import UserProfileBase


class DoseOccurrence(BaseModel):
    """One expected dose: one medicine on one calendar day.

    ``times`` only says when reminders go out; adherence counts the day once.
    ``status`` is what the user sees (a recorded value passes through as-is),
    ``state`` is the classification every statistic is built on.
    """

    course_id: uuid.UUID
    course_name: str
    medicine_id: uuid.UUID
    medicine_name: str
    day: date
    times: List[str] = []
    status: str
    state: DoseStatus


class CalendarDay(BaseModel):
    day: date
    has_medicines: bool
    is_today: bool


def classify(recorded: Optional[str], day: date, today: date) -> DoseStatus:
    """Single rule for taken/missed/pending.

    Anything that is not "taken" on a day that has already passed counts as
    missed, whatever text was recorded.
    """
    if is_taken(recorded):
        return DoseStatus.TAKEN
    if is_missed(recorded) or day < today:
        return DoseStatus.MISSED
    return DoseStatus.PENDING


def is_active(course: MedicineCourse, day: date) -> bool:
    if course.start_date is None:
        return True
    return course.start_date <= day < course.end_date


def covers(course: MedicineCourse, day: date) -> bool:
    """True if the dated course has doses on ``day``; undated courses never do."""
    if course.start_date is None:
        return False
    return course.start_date <= day < course.end_date


def course_days(course: MedicineCourse) -> List[date]:
    if course.start_date is None:
        return []
    return [course.start_date + timedelta(days=i) for i in range(course.duration)]


def occurrence_for(
    course: MedicineCourse,
    medicine: Medicine,
    day: date,
    today: date,
    user: Optional[UserProfileBase] = None,
) -> DoseOccurrence:
    recorded = medicine.status(day)
    state = classify(recorded, day, today)
    return DoseOccurrence(
        course_id=course.id,
        course_name=course.name,
        medicine_id=medicine.id,
        medicine_name=medicine.name,
        day=day,
        times=occurrence_times(medicine, user),
        status=recorded if recorded is not None else state.value,
        state=state,
    )


def course_occurrences(
    course: MedicineCourse,
    today: date,
    user: Optional[UserProfileBase] = None,
) -> List[DoseOccurrence]:
    return [
        occurrence_for(course, medicine, day, today, user)
        for day in course_days(course)
        for medicine in course.medicines
    ]


def medicines_for_date(
    courses: Iterable[MedicineCourse],
    day: date,
) -> List[Tuple[MedicineCourse, Medicine]]:
    return [
        (course, medicine)
        for course in courses
        if covers(course, day)
        for medicine in course.medicines
    ]


def occurrences_on(
    courses: Iterable[MedicineCourse],
    day: date,
    today: date,
    user: Optional[UserProfileBase] = None,
) -> List[DoseOccurrence]:
    return [
        occurrence_for(course, medicine, day, today, user)
        for course, medicine in medicines_for_date(courses, day)
    ]


def month_grid(
    year: int,
    month: int,
    courses: Iterable[MedicineCourse],
    today: date,
) -> List[List[Optional[CalendarDay]]]:
    """Sunday-first weeks of the month; days outside it are None."""
    courses = list(courses)
    weeks = []
    for week in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdayscalendar(year, month):
        row = []
        for day_number in week:
            if day_number == 0:
                row.append(None)
                continue
            day = date(year, month, day_number)
            row.append(CalendarDay(
                day=day,
                has_medicines=any(covers(c, day) and c.medicines for c in courses),
                is_today=day == today,
            ))
        weeks.append(row)
    return weeks

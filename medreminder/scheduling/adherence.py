import uuid
from datetime import date, timedelta
from typing import Iterator, List, Optional

from pydantic import BaseModel

from medreminder.courses.schemas import DoseStatus, Medicine, MedicineCourse, is_taken
from medreminder.scheduling.occurrences import classify, is_active


class DoseStatistics(BaseModel):
    total: int = 0
    taken: int = 0
    missed: int = 0
    pending: int = 0

    @property
    def adherence_rate(self) -> Optional[float]:
        return adherence_rate(self.taken, self.total)


class MedicineDoses(BaseModel):
    medicine_id: uuid.UUID
    medicine_name: str
    total: int
    taken: int
    adherence_rate: Optional[float] = None


class CourseStatistics(BaseModel):
    course_id: uuid.UUID
    course_name: str
    progress: float
    timeline_progress: float
    days_remaining: int
    is_active: bool
    total: int
    taken: int
    missed: int
    pending: int
    adherence_rate: Optional[float] = None
    medicines: List[MedicineDoses] = []


def adherence_rate(taken: int, total: int) -> Optional[float]:
    """Percentage of doses taken, None when nothing was due yet."""
    if total <= 0:
        return None
    return taken / total * 100


def _elapsed_days(course: MedicineCourse, today: date) -> Iterator[date]:
    """Course days from the start up to today, never past the last course day."""
    if course.start_date is None or today < course.start_date:
        return
    last = min(today, course.last_day)
    day = course.start_date
    while day <= last:
        yield day
        day += timedelta(days=1)


def days_remaining(course: MedicineCourse, today: date) -> int:
    if course.start_date is None or today < course.start_date:
        return course.duration
    if today >= course.end_date:
        return 0
    return max(0, (course.end_date - today).days)


def progress(course: MedicineCourse, today: date) -> float:
    """Taken doses over every dose the course will ever have, in [0, 1]."""
    expected = course.duration * len(course.medicines)
    if expected == 0:
        return 0.0

    taken = 0
    for day in _elapsed_days(course, today):
        for medicine in course.medicines:
            if is_taken(medicine.status(day)):
                taken += 1
    return taken / expected


def timeline_progress(course: MedicineCourse, today: date) -> float:
    """Share of the course's calendar span that has gone by."""
    if course.start_date is None or today < course.start_date:
        return 0.0
    if today > course.end_date:
        return 1.0
    return min((today - course.start_date).days / course.duration, 1.0)


def dose_statistics(course: MedicineCourse, today: date) -> DoseStatistics:
    stats = DoseStatistics()
    for day in _elapsed_days(course, today):
        for medicine in course.medicines:
            stats.total += 1
            state = classify(medicine.status(day), day, today)
            if state == DoseStatus.TAKEN:
                stats.taken += 1
            elif state == DoseStatus.MISSED:
                stats.missed += 1
            else:
                stats.pending += 1
    return stats


def medicine_doses(medicine: Medicine, course: MedicineCourse, today: date) -> MedicineDoses:
    total = 0
    taken = 0
    for day in _elapsed_days(course, today):
        total += 1
        if is_taken(medicine.status(day)):
            taken += 1
    return MedicineDoses(
        medicine_id=medicine.id,
        medicine_name=medicine.name,
        total=total,
        taken=taken,
        adherence_rate=adherence_rate(taken, total),
    )


def course_statistics(course: MedicineCourse, today: date) -> CourseStatistics:
    stats = dose_statistics(course, today)
    return CourseStatistics(
        course_id=course.id,
        course_name=course.name,
        progress=progress(course, today),
        timeline_progress=timeline_progress(course, today),
        days_remaining=days_remaining(course, today),
        is_active=is_active(course, today),
        total=stats.total,
        taken=stats.taken,
        missed=stats.missed,
        pending=stats.pending,
        adherence_rate=stats.adherence_rate,
        medicines=[medicine_doses(m, course, today) for m in course.medicines],
    )

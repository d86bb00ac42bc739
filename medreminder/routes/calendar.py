from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from medreminder.core.deps import get_store, get_today
from medreminder.courses.store import CourseStore
from medreminder.scheduling.occurrences import CalendarDay, DoseOccurrence, month_grid, occurrences_on

router = APIRouter()


@router.get("/day/{day}", response_model=List[DoseOccurrence])
async def get_day(
    day: date,
    store: CourseStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Every medicine due on ``day`` with its taken/missed/pending state."""
    courses = await store.load_courses()
    user = await store.load_user_profile()
    return occurrences_on(courses, day, today, user)


@router.get("/month/{year}/{month}", response_model=List[List[Optional[CalendarDay]]])
async def get_month(
    year: int,
    month: int,
    store: CourseStore = Depends(get_store),
    today: date = Depends(get_today),
):
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise HTTPException(status_code=400, detail="Invalid month")
    courses = await store.load_courses()
    return month_grid(year, month, courses, today)

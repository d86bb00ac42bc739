import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from medreminder.core.deps import get_course_service, get_ledger, get_store, get_today
from medreminder.courses.ledger import DoseLedger, StatusChange
from medreminder.courses.schemas import CourseCreate, CourseUpdate, MedicineCourse, StatusUpdate
from medreminder.courses.services import CourseService
from medreminder.courses.store import CourseStore
from medreminder.scheduling.adherence import CourseStatistics, course_statistics
from medreminder.scheduling.occurrences import DoseOccurrence, course_occurrences

router = APIRouter()


async def _get_course_or_404(store: CourseStore, course_id: uuid.UUID) -> MedicineCourse:
    course = await store.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.get("/", response_model=List[MedicineCourse])
async def list_courses(store: CourseStore = Depends(get_store)):
    return await store.load_courses()


@router.post("/", response_model=MedicineCourse, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    service: CourseService = Depends(get_course_service),
    today: date = Depends(get_today),
):
    return await service.create_course(payload, today)


@router.get("/{course_id}", response_model=MedicineCourse)
async def get_course(course_id: uuid.UUID, store: CourseStore = Depends(get_store)):
    return await _get_course_or_404(store, course_id)


@router.put("/{course_id}", response_model=MedicineCourse)
async def update_course(
    course_id: uuid.UUID,
    payload: CourseUpdate,
    service: CourseService = Depends(get_course_service),
):
    course = await service.update_course(course_id, payload)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: uuid.UUID, service: CourseService = Depends(get_course_service)):
    if not await service.delete_course(course_id):
        raise HTTPException(status_code=404, detail="Course not found")


@router.delete("/{course_id}/medicines/{medicine_id}", response_model=MedicineCourse)
async def delete_medicine(
    course_id: uuid.UUID,
    medicine_id: uuid.UUID,
    service: CourseService = Depends(get_course_service),
):
    course = await service.delete_medicine(course_id, medicine_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return course


# ---------------- DOSE STATUS ----------------
@router.post("/{course_id}/medicines/{medicine_id}/status")
async def update_medicine_status(
    course_id: uuid.UUID,
    medicine_id: uuid.UUID,
    payload: StatusUpdate,
    ledger: DoseLedger = Depends(get_ledger),
    today: date = Depends(get_today),
):
    """
    Record a status ("taken", "missed", ...) for one day, today by default.

    Unknown ids are not an error: nothing is recorded and ``updated`` is false.
    """
    change: StatusChange | None = await ledger.update_status(
        course_id, medicine_id, payload.status, payload.on_date or today
    )
    return {"updated": change is not None, "change": change}


@router.get("/{course_id}/statistics", response_model=CourseStatistics)
async def get_course_statistics(
    course_id: uuid.UUID,
    store: CourseStore = Depends(get_store),
    today: date = Depends(get_today),
):
    course = await _get_course_or_404(store, course_id)
    return course_statistics(course, today)


@router.get("/{course_id}/occurrences", response_model=List[DoseOccurrence])
async def get_course_occurrences(
    course_id: uuid.UUID,
    store: CourseStore = Depends(get_store),
    today: date = Depends(get_today),
):
    course = await _get_course_or_404(store, course_id)
    user = await store.load_user_profile()
    return course_occurrences(course, today, user)

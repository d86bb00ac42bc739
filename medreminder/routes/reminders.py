import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from medreminder.core.deps import get_course_service, get_ledger, get_notifications, get_store, get_today
from medreminder.courses.ledger import DoseLedger
from medreminder.courses.services import CourseService
from medreminder.courses.store import CourseStore
from medreminder.notifications.manager import NotificationManager, NotificationRequest
from medreminder.notifications.responses import (
    NotificationResponse,
    ResponseResult,
    handle_notification_response,
)
from medreminder.scheduling.times import notification_times, occurrence_times

router = APIRouter()


@router.get("/times", response_model=List[str])
async def get_notification_times(store: CourseStore = Depends(get_store)):
    """All distinct clock times at which some medicine is due."""
    courses = await store.load_courses()
    user = await store.load_user_profile()
    return notification_times([m for c in courses for m in c.medicines], user)


@router.get("/medicine/{course_id}/{medicine_id}", response_model=List[str])
async def get_medicine_times(
    course_id: uuid.UUID,
    medicine_id: uuid.UUID,
    store: CourseStore = Depends(get_store),
):
    course = await store.get_course(course_id)
    medicine = course.find_medicine(medicine_id) if course else None
    if medicine is None:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return occurrence_times(medicine, await store.load_user_profile())


@router.post("/schedule", response_model=List[NotificationRequest])
async def schedule_notifications(service: CourseService = Depends(get_course_service)):
    """Rebuild the whole reminder plan from the stored courses and profile."""
    return await service.reschedule_notifications()


@router.get("/pending", response_model=List[NotificationRequest])
async def get_pending_notifications(notifications: NotificationManager = Depends(get_notifications)):
    return notifications.pending()


@router.post("/respond", response_model=ResponseResult)
async def respond_to_notification(
    payload: NotificationResponse,
    ledger: DoseLedger = Depends(get_ledger),
    notifications: NotificationManager = Depends(get_notifications),
    today: date = Depends(get_today),
):
    """
    Handle the user's action on a delivered notification.

    Example:
    {
        "action": "markTaken",
        "identifier": "notification_0_08:30",
        "body": "Time to take: Amoxicillin, Vitamin D"
    }
    """
    return await handle_notification_response(payload, ledger, notifications, today)

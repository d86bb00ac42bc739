from datetime import date

from fastapi import Request

from medreminder.core.clock import local_today
from medreminder.courses.ledger import DoseLedger
from medreminder.courses.services import CourseService
from medreminder.courses.store import CourseStore
from medreminder.notifications.manager import NotificationManager


def get_store(request: Request) -> CourseStore:
    return request.app.state.store


def get_ledger(request: Request) -> DoseLedger:
    return request.app.state.ledger


def get_course_service(request: Request) -> CourseService:
    return request.app.state.course_service


def get_notifications(request: Request) -> NotificationManager:
    return request.app.state.notifications


def get_today(request: Request) -> date:
    return local_today(request.app.state.settings.timezone)

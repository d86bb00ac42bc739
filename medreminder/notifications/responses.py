import enum
import logging
from datetime import date
from typing import List

from pydantic import BaseModel, Field

from medreminder.courses.ledger import DoseLedger, StatusChange
from medreminder.courses.schemas import DoseStatus
from medreminder.notifications.manager import REMINDER_PREFIX, SNOOZE_TITLE, MedicineRef, NotificationManager

logger = logging.getLogger(__name__)


class NotificationAction(str, enum.Enum):
    MARK_TAKEN = "markTaken"
    REMIND_LATER = "remindLater"
    OPEN = "open"
    DISMISS = "dismiss"


class NotificationResponse(BaseModel):
    """What the device reports back when the user acts on a notification."""

    action: NotificationAction
    identifier: str = ""
    body: str = ""
    medicine_refs: List[MedicineRef] = Field(default_factory=list)


class ResponseResult(BaseModel):
    action: NotificationAction
    updated: List[StatusChange] = Field(default_factory=list)
    snoozed_identifier: str | None = None


def extract_medicine_names(body: str) -> List[str]:
    if body.lower().startswith(REMINDER_PREFIX.lower()):
        text = body[len(REMINDER_PREFIX):]
    else:
        text = body.replace(SNOOZE_TITLE, "").strip()
    return [name for name in text.split(", ") if name]


async def handle_notification_response(
    response: NotificationResponse,
    ledger: DoseLedger,
    notifications: NotificationManager,
    today: date,
) -> ResponseResult:
    result = ResponseResult(action=response.action)

    if response.action == NotificationAction.MARK_TAKEN:
        refs = list(response.medicine_refs)
        if not refs:
            # Older requests carry only the text; match by name across all
            # courses, so two medicines sharing a name are both marked.
            names = set(extract_medicine_names(response.body))
            courses = await ledger.store.load_courses()
            refs = [
                MedicineRef(course_id=course.id, medicine_id=medicine.id)
                for course in courses
                for medicine in course.medicines
                if medicine.name in names
            ]

        for ref in refs:
            change = await ledger.update_status(ref.course_id, ref.medicine_id, DoseStatus.TAKEN.value, today)
            if change is not None:
                result.updated.append(change)
        logger.info("Marked %d medicines as taken from notification %s", len(result.updated), response.identifier)

    elif response.action == NotificationAction.REMIND_LATER:
        request = notifications.snooze(response.body, response.medicine_refs)
        result.snoozed_identifier = request.identifier

    else:
        logger.info("Notification %s: %s", response.identifier, response.action.value)

    return result

import logging
import uuid
from datetime import date
from typing import Iterable, List, Optional

from pydantic import BaseModel

from medreminder.courses.schemas import Medicine, MedicineCourse, MedicineUnitType, is_taken

logger = logging.getLogger(__name__)


class LowStockItem(BaseModel):
    course_id: uuid.UUID
    course_name: str
    medicine_id: uuid.UUID
    medicine_name: str
    current_count: int
    low_stock_threshold: int
    unit_type: MedicineUnitType
    percentage_remaining: float


def is_taken_transition(previous: Optional[str], new: str) -> bool:
    """Only the first move into "taken" for a date counts as a dose consumed."""
    return is_taken(new) and not is_taken(previous)


def consume_dose(medicine: Medicine) -> bool:
    """Take one unit out of a tracked inventory; never goes below zero."""
    inventory = medicine.inventory
    if inventory is None or not inventory.tracking_enabled:
        return False
    if inventory.current_count <= 0:
        return False
    inventory.current_count -= 1
    logger.info(
        "Inventory for %s decremented to %d %s",
        medicine.name, inventory.current_count, inventory.unit_type.value,
    )
    return True


def needs_low_stock_alert(medicine: Medicine) -> bool:
    inventory = medicine.inventory
    return bool(
        inventory
        and inventory.tracking_enabled
        and inventory.notify_when_low
        and inventory.is_low_stock
    )


def refill(medicine: Medicine, today: date) -> bool:
    if medicine.inventory is None:
        return False
    medicine.inventory.current_count = medicine.inventory.full_pack_count
    medicine.inventory.last_refill_date = today
    return True


def low_stock_medicines(courses: Iterable[MedicineCourse]) -> List[LowStockItem]:
    items = []
    for course in courses:
        for medicine in course.medicines:
            inventory = medicine.inventory
            if inventory and inventory.tracking_enabled and inventory.is_low_stock:
                items.append(LowStockItem(
                    course_id=course.id,
                    course_name=course.name,
                    medicine_id=medicine.id,
                    medicine_name=medicine.name,
                    current_count=inventory.current_count,
                    low_stock_threshold=inventory.low_stock_threshold,
                    unit_type=inventory.unit_type,
                    percentage_remaining=inventory.percentage_remaining,
                ))
    return items

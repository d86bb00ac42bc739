import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from medreminder.core.deps import get_course_service, get_store, get_today
from medreminder.courses.inventory import LowStockItem, low_stock_medicines
from medreminder.courses.schemas import Medicine, MedicineInventory
from medreminder.courses.services import CourseService
from medreminder.courses.store import CourseStore

router = APIRouter()


@router.get("/low-stock", response_model=List[LowStockItem])
async def get_low_stock(store: CourseStore = Depends(get_store)):
    return low_stock_medicines(await store.load_courses())


@router.put("/{course_id}/{medicine_id}", response_model=Medicine)
async def update_inventory(
    course_id: uuid.UUID,
    medicine_id: uuid.UUID,
    payload: MedicineInventory,
    service: CourseService = Depends(get_course_service),
):
    medicine = await service.update_inventory(course_id, medicine_id, payload)
    if medicine is None:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return medicine


@router.post("/{course_id}/{medicine_id}/refill", response_model=Medicine)
async def refill_inventory(
    course_id: uuid.UUID,
    medicine_id: uuid.UUID,
    service: CourseService = Depends(get_course_service),
    today: date = Depends(get_today),
):
    medicine = await service.refill_inventory(course_id, medicine_id, today)
    if medicine is None:
        raise HTTPException(status_code=404, detail="No inventory to refill")
    return medicine

import enum
import uuid
from datetime import date, time, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Join key shared by the calendar, the ledger and the statistics.
DATE_KEY_FORMAT = "%Y-%m-%d"


def date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


class Frequency(str, enum.Enum):
    ONCE_DAILY = "onceDaily"
    TWICE_DAILY = "twiceDaily"
    THRICE_DAILY = "thriceDaily"
    EVERY_X_HOURS = "everyXHours"


class Timing(str, enum.Enum):
    """Which meal anchors a once-daily medicine."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"
    SPECIFIC_TIME = "specificTime"


class WhenToTake(str, enum.Enum):
    BEFORE_MEALS = "beforeMeals"
    AFTER_MEALS = "afterMeals"
    X_MINUTES_BEFORE_MEALS = "xMinutesBeforeMeals"
    X_MINUTES_AFTER_MEALS = "xMinutesAfterMeals"
    AT_BEDTIME = "atBedtime"

    @property
    def uses_x_minutes(self) -> bool:
        return self in (WhenToTake.X_MINUTES_BEFORE_MEALS, WhenToTake.X_MINUTES_AFTER_MEALS)


class MedicineUnitType(str, enum.Enum):
    PILLS = "Pills"
    TABLETS = "Tablets"
    CAPSULES = "Capsules"
    MILLILITERS = "ml"
    DOSES = "Doses"
    SACHETS = "Sachets"
    PATCHES = "Patches"
    INHALERS = "Inhalers"


class DoseStatus(str, enum.Enum):
    TAKEN = "taken"
    MISSED = "missed"
    PENDING = "pending"


def normalize_status(status: str) -> str:
    """Canonical spelling for the known statuses, anything else kept as given."""
    cleaned = status.strip()
    lowered = cleaned.lower()
    if lowered in {s.value for s in DoseStatus}:
        return lowered
    return cleaned


def is_taken(status: Optional[str]) -> bool:
    return status is not None and status.strip().lower() == DoseStatus.TAKEN.value


def is_missed(status: Optional[str]) -> bool:
    return status is not None and status.strip().lower() == DoseStatus.MISSED.value


# ---------------------------------------------------------------------------
# INVENTORY
# ---------------------------------------------------------------------------

class MedicineInventory(BaseModel):
    tracking_enabled: bool = True
    unit_type: MedicineUnitType = MedicineUnitType.PILLS
    current_count: int = Field(30, ge=0)
    full_pack_count: int = Field(30, ge=0)
    low_stock_threshold: int = Field(5, ge=0)
    notify_when_low: bool = True
    last_refill_date: Optional[date] = None

    @property
    def is_low_stock(self) -> bool:
        return self.current_count <= self.low_stock_threshold

    @property
    def percentage_remaining(self) -> float:
        if self.full_pack_count <= 0:
            return 0.0
        return min(1.0, self.current_count / self.full_pack_count)


# ---------------------------------------------------------------------------
# MEDICINE
# ---------------------------------------------------------------------------

class Medicine(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(..., min_length=1)
    frequency: Frequency = Frequency.ONCE_DAILY
    timing: Timing = Timing.MORNING
    when_to_take: WhenToTake = WhenToTake.BEFORE_MEALS
    custom_time: Optional[time] = None
    x_minutes: Optional[int] = Field(None, ge=1, le=120)
    x_hours: Optional[int] = Field(None, ge=1, le=24)
    status_by_date: Dict[str, str] = Field(default_factory=dict)
    inventory: Optional[MedicineInventory] = None

    def status(self, day: date) -> Optional[str]:
        return self.status_by_date.get(date_key(day))


class MedicineCreate(BaseModel):
    """Medicine as sent by the client when adding or editing a course.

    An ``id`` that matches a medicine already in the course marks an edit:
    its recorded statuses are kept. Any other ``id`` is ignored and the
    medicine gets a fresh one.
    """

    id: Optional[uuid.UUID] = None
    name: str = Field(..., min_length=1)
    frequency: Frequency
    timing: Timing = Timing.MORNING
    when_to_take: WhenToTake
    custom_time: Optional[time] = None
    x_minutes: Optional[int] = Field(None, ge=1, le=120)
    x_hours: Optional[int] = Field(None, ge=1, le=24)
    inventory: Optional[MedicineInventory] = None

    @model_validator(mode="after")
    def check_required_options(self):
        if self.timing == Timing.SPECIFIC_TIME and self.custom_time is None:
            raise ValueError("custom_time is required when timing is specificTime")
        if self.when_to_take.uses_x_minutes and self.x_minutes is None:
            raise ValueError(f"x_minutes is required when when_to_take is {self.when_to_take.value}")
        if self.frequency == Frequency.EVERY_X_HOURS and self.x_hours is None:
            raise ValueError("x_hours is required when frequency is everyXHours")
        return self

    def to_medicine(self, existing: Optional[Medicine] = None) -> Medicine:
        # Options that do not apply to the chosen settings are dropped
        return Medicine(
            id=existing.id if existing else uuid.uuid4(),
            name=self.name,
            frequency=self.frequency,
            timing=self.timing,
            when_to_take=self.when_to_take,
            custom_time=self.custom_time if self.timing == Timing.SPECIFIC_TIME else None,
            x_minutes=self.x_minutes if self.when_to_take.uses_x_minutes else None,
            x_hours=self.x_hours if self.frequency == Frequency.EVERY_X_HOURS else None,
            status_by_date=dict(existing.status_by_date) if existing else {},
            inventory=self.inventory or (existing.inventory if existing else None),
        )


# ---------------------------------------------------------------------------
# COURSE
# ---------------------------------------------------------------------------

class MedicineCourse(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1)
    start_date: Optional[date] = None
    medicines: List[Medicine] = Field(default_factory=list)

    @property
    def end_date(self) -> Optional[date]:
        """First day after the course (exclusive bound)."""
        if self.start_date is None:
            return None
        return self.start_date + timedelta(days=self.duration)

    @property
    def last_day(self) -> Optional[date]:
        if self.start_date is None:
            return None
        return self.start_date + timedelta(days=self.duration - 1)

    def find_medicine(self, medicine_id: uuid.UUID) -> Optional[Medicine]:
        for medicine in self.medicines:
            if medicine.id == medicine_id:
                return medicine
        return None


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1, le=365)
    start_date: Optional[date] = None
    medicines: List[MedicineCreate] = Field(..., min_length=1)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    duration: Optional[int] = Field(None, ge=1, le=365)
    medicines: Optional[List[MedicineCreate]] = Field(None, min_length=1)


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    on_date: Optional[date] = None

    @field_validator("status")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("status must not be blank")
        return value

import os
import sys
import uuid
from datetime import date, datetime, time

import pytest

# --- Ensure project root is on sys.path so "medreminder" imports work ---
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))  # go up from tests/ to project root
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from medreminder.courses.schemas import (  # noqa: E402
    Frequency,
    Medicine,
    MedicineCourse,
    MedicineInventory,
    Timing,
    WhenToTake,
)
from medreminder.courses.ledger import DoseLedger  # noqa: E402
from medreminder.courses.store import CourseStore  # noqa: E402
from medreminder.db.database import build_engine, build_sessionmaker, create_tables  # noqa: E402
from medreminder.notifications.manager import NotificationManager, NotificationOutbox  # noqa: E402
from medreminder.users.schemas import UserProfileBase  # noqa: E402

TODAY = date(2025, 3, 10)
NOW = datetime(2025, 3, 10, 10, 0)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def user():
    return UserProfileBase(
        name="Asha",
        age=34,
        gender="female",
        medical_conditions=["asthma"],
        breakfast_time=time(8, 0),
        lunch_time=time(13, 0),
        dinner_time=time(20, 0),
        bedtime=time(22, 0),
    )


def make_medicine(name="Amoxicillin", **kwargs) -> Medicine:
    kwargs.setdefault("frequency", Frequency.ONCE_DAILY)
    kwargs.setdefault("timing", Timing.MORNING)
    kwargs.setdefault("when_to_take", WhenToTake.AFTER_MEALS)
    return Medicine(name=name, **kwargs)


def make_course(name="Antibiotics", duration=5, start_date=TODAY, medicines=None) -> MedicineCourse:
    return MedicineCourse(
        id=uuid.uuid4(),
        name=name,
        duration=duration,
        start_date=start_date,
        medicines=medicines if medicines is not None else [make_medicine()],
    )


def make_inventory(**kwargs) -> MedicineInventory:
    return MedicineInventory(**kwargs)


@pytest.fixture
async def engine(anyio_backend, tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def store(sessionmaker):
    return CourseStore(sessionmaker)


@pytest.fixture
def outbox():
    return NotificationOutbox()


@pytest.fixture
def notifications(outbox):
    return NotificationManager(outbox, clock=lambda: NOW)


@pytest.fixture
def ledger(store, notifications):
    return DoseLedger(store, notifications)

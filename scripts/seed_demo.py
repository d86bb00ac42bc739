import asyncio
from datetime import time

from medreminder.core.clock import local_today
from medreminder.core.config import settings
from medreminder.courses.schemas import Frequency, Medicine, MedicineCourse, MedicineInventory, WhenToTake
from medreminder.courses.store import CourseStore
from medreminder.db.database import build_engine, build_sessionmaker, create_tables
from medreminder.users.crud import upsert_profile
from medreminder.users.schemas import UserProfileBase


async def seed_demo():
    engine = build_engine(settings.database_url)
    await create_tables(engine)
    sessionmaker = build_sessionmaker(engine)

    async with sessionmaker() as db:
        profile = await upsert_profile(
            db,
            UserProfileBase(
                name="Test User",
                age=30,
                breakfast_time=time(8, 0),
                lunch_time=time(13, 0),
                dinner_time=time(20, 0),
                bedtime=time(22, 0),
            ),
        )
        print("Saved profile:", profile.name)

    course = MedicineCourse(
        name="Antibiotics",
        duration=7,
        start_date=local_today(),
        medicines=[
            Medicine(
                name="Amoxicillin",
                frequency=Frequency.THRICE_DAILY,
                when_to_take=WhenToTake.AFTER_MEALS,
                inventory=MedicineInventory(current_count=21, full_pack_count=21),
            ),
            Medicine(name="Vitamin D", when_to_take=WhenToTake.AFTER_MEALS),
        ],
    )
    store = CourseStore(sessionmaker)
    async with store.lock:
        await store.save_courses([course])
    print("Created course:", course.name, course.id)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo())

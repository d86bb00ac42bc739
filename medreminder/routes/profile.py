from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from medreminder.core.deps import get_course_service
from medreminder.courses.services import CourseService
from medreminder.db.database import get_db
from medreminder.users import crud as user_crud
from medreminder.users.schemas import UserProfileBase, UserProfileRead

router = APIRouter()


@router.get("/", response_model=UserProfileRead)
async def get_my_profile(db: AsyncSession = Depends(get_db)):
    """Get the user's profile."""
    profile = await user_crud.get_profile(db)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not created yet")
    return profile


@router.put("/", response_model=UserProfileRead)
async def create_or_update_profile(
    payload: UserProfileBase,
    db: AsyncSession = Depends(get_db),
    service: CourseService = Depends(get_course_service),
):
    """Create or update the user's profile.

    Meal and bed times drive every reminder, so the plan is rebuilt.
    """
    profile = await user_crud.upsert_profile(db, payload)
    await service.reschedule_notifications()
    return profile

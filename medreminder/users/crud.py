import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medreminder.core.errors import PersistenceError
from medreminder.db.models import UserProfile
from medreminder.users.schemas import UserProfileBase, UserProfileRead

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession) -> Optional[UserProfileRead]:
    """Return the stored profile, or None when it has not been created yet."""
    try:
        result = await db.execute(select(UserProfile).order_by(UserProfile.id).limit(1))
        profile = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("Failed to load user profile")
        raise PersistenceError("Failed to load user profile") from e

    if profile is None:
        return None
    return UserProfileRead.model_validate(profile)


async def upsert_profile(db: AsyncSession, data: UserProfileBase) -> UserProfileRead:
    try:
        result = await db.execute(select(UserProfile).order_by(UserProfile.id).limit(1))
        existing = result.scalar_one_or_none()

        if existing:
            for field, value in data.model_dump().items():
                setattr(existing, field, value)
            profile = existing
        else:
            profile = UserProfile(**data.model_dump())
            db.add(profile)

        await db.commit()
        await db.refresh(profile)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to save user profile")
        raise PersistenceError("Failed to save user profile") from e

    logger.info("Saved profile for %s", profile.name)
    return UserProfileRead.model_validate(profile)

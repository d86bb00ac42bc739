from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class UserProfileBase(BaseModel):
    name: str = Field(..., min_length=1)
    age: int = Field(0, ge=0)
    gender: str = ""
    medical_conditions: List[str] = Field(default_factory=list)
    breakfast_time: time = time(8, 0)
    lunch_time: time = time(13, 0)
    dinner_time: time = time(20, 0)
    bedtime: time = time(22, 0)

    @field_validator("breakfast_time", "lunch_time", "dinner_time", "bedtime")
    @classmethod
    def drop_seconds(cls, value: time) -> time:
        # Only hour and minute matter for scheduling
        return value.replace(second=0, microsecond=0, tzinfo=None)


class UserProfileRead(UserProfileBase):
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

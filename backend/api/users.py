"""Users API

Profile with statistics, preferences, platform handles and activity.
"""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user_id
from core.timeutils import is_valid_zone
from engines.dashboard import DashboardBuilder
from engines.profile import ProfileTracker

router = APIRouter()


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str | None
    timezone: str
    dark_mode: bool
    notifications: bool
    platform_usernames: dict[str, str]
    last_active_date: datetime | None
    created_at: datetime | None

    class Config:
        from_attributes = True

    @field_validator("platform_usernames", mode="before")
    @classmethod
    def _usernames_default(cls, v):
        return v or {}


class PreferencesUpdate(BaseModel):
    timezone: str | None = Field(None, max_length=64)
    dark_mode: bool | None = None
    notifications: bool | None = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v):
        if v is not None and not is_valid_zone(v):
            raise ValueError(f"unknown timezone '{v}'")
        return v


class PlatformUsernamesUpdate(BaseModel):
    leetcode: str | None = Field(None, max_length=100)
    hackerrank: str | None = Field(None, max_length=100)
    codeforces: str | None = Field(None, max_length=100)
    codechef: str | None = Field(None, max_length=100)
    atcoder: str | None = Field(None, max_length=100)


@router.get("/profile")
async def get_profile(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user, stats = await DashboardBuilder(db).profile(user_id)
    return {"user": UserResponse.model_validate(user), **stats}


@router.put("/preferences", response_model=UserResponse)
async def update_preferences(
    data: PreferencesUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await ProfileTracker(db).update_preferences(user_id, **data.model_dump(exclude_none=True))


@router.put("/platform-usernames", response_model=UserResponse)
async def update_platform_usernames(
    data: PlatformUsernamesUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Set handles per platform; sending an empty string removes one."""
    usernames = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    return await ProfileTracker(db).update_platform_usernames(user_id, usernames)


@router.get("/activity")
async def get_activity(
    period: int = Query(30, ge=1, le=366, description="Look-back window in days"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Daily, weekly and monthly solve buckets over the last ``period`` days."""
    return await DashboardBuilder(db).activity(user_id, period)

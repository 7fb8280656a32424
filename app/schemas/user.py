"""
사용자/프로필 관련 스키마
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field


class ProfileSummary(BaseModel):
    """중첩 응답용 프로필 요약"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None


class ProfileResponse(ProfileSummary):
    bio: Optional[str] = None
    is_available: bool = True
    total_interpretations: int = 0
    rating: float = 0
    current_plan_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    created_at: datetime


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    avatar_url: Optional[str] = Field(None, alias="avatarUrl", max_length=500)


class AvailabilityUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    is_available: bool = Field(..., alias="isAvailable")


class AvatarUpload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    avatar: str = Field(..., min_length=1, description="data URL (data:image/png;base64,...)")

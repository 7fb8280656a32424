"""
해몽 요청 스키마
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.user import ProfileSummary


RequestStatus = Literal[
    "open", "assigned", "in_progress", "completed", "cancelled",
    "pending", "accepted", "rejected",
]


class RequestCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    dream_id: uuid.UUID = Field(..., alias="dreamId")
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    budget: Optional[Decimal] = Field(None, ge=0)


class RequestUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    status: Optional[RequestStatus] = None
    interpreter_id: Optional[uuid.UUID] = Field(None, alias="interpreterId")

    @field_validator("status", mode="before")
    @classmethod
    def _status_not_null(cls, v):
        if v is None:
            raise ValueError("status는 null일 수 없습니다.")
        return v


class DreamBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    status: str


class RequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dream_id: uuid.UUID
    dreamer_id: uuid.UUID
    interpreter_id: Optional[uuid.UUID] = None
    status: str
    title: str
    description: Optional[str] = None
    budget: Optional[float] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    dream: Optional[DreamBrief] = None
    dreamer: Optional[ProfileSummary] = None
    interpreter: Optional[ProfileSummary] = None

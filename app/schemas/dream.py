"""
꿈 관련 스키마
"""

from datetime import datetime, timezone
from typing import Optional, Literal, Dict, Any
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.user import ProfileSummary


DreamStatus = Literal["new", "pending_inquiry", "pending_interpretation", "interpreted", "returned"]


def _parse_dream_date(v):
    if v is None or v == "":
        return None
    if isinstance(v, str) and len(v) == 10:
        # YYYY-MM-DD
        v = f"{v}T00:00:00"
    return v


def _to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class DreamCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    dream_date: Optional[datetime] = None
    mood: Optional[str] = Field(None, max_length=50)
    audio_minutes: int = Field(0, alias="audioMinutes", ge=0)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("dream_date", mode="before")
    @classmethod
    def _date_only(cls, v):
        return _parse_dream_date(v)

    @field_validator("dream_date")
    @classmethod
    def _naive(cls, v):
        return _to_naive_utc(v)


class DreamUpdate(BaseModel):
    """부분 수정. 보낸 필드만 권한 검사/적용 대상 (interpreter_id=null은 배정 해제)"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    status: Optional[DreamStatus] = None
    interpretation: Optional[str] = None
    notes: Optional[str] = None
    interpreter_id: Optional[uuid.UUID] = Field(None, alias="interpreterId")

    @field_validator("status", mode="before")
    @classmethod
    def _status_not_null(cls, v):
        if v is None:
            raise ValueError("status는 null일 수 없습니다.")
        return v


class DreamAudioUpload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    audio: str = Field(..., min_length=1, description="data URL (data:audio/webm;base64,...)")
    duration: Optional[int] = Field(None, ge=0, description="초 단위 길이")


class DreamResponse(BaseModel):
    id: uuid.UUID
    dreamer_id: uuid.UUID
    interpreter_id: Optional[uuid.UUID] = None
    title: str
    content: str
    status: str
    interpretation: Optional[str] = None
    notes: Optional[str] = None
    dream_date: Optional[datetime] = None
    mood: Optional[str] = None
    audio_url: Optional[str] = None
    audio_duration: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    dreamer: Optional[ProfileSummary] = None
    interpreter: Optional[ProfileSummary] = None


class DreamStats(BaseModel):
    total: int
    by_status: Dict[str, int]

"""
댓글 관련 스키마
"""

from datetime import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.user import ProfileSummary


class CommentCreate(BaseModel):
    """댓글 생성 스키마"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    dream_id: uuid.UUID = Field(..., alias="dreamId")
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    """댓글 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dream_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime
    user: ProfileSummary

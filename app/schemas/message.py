"""
꿈 메시지 스키마
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.user import ProfileSummary


class MessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    dream_id: uuid.UUID = Field(..., alias="dreamId")
    content: Optional[str] = Field(None, max_length=10000)
    audio: Optional[str] = Field(None, description="data URL")

    @model_validator(mode="after")
    def _content_or_audio(self):
        if not (self.content and self.content.strip()) and not self.audio:
            raise ValueError("content 또는 audio 중 하나는 필요합니다.")
        return self


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dream_id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    message_type: str
    audio_url: Optional[str] = None
    created_at: datetime
    sender: Optional[ProfileSummary] = None

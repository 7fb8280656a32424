"""
채팅 관련 스키마
"""

from datetime import datetime
from typing import Optional, Literal, List
import uuid

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.user import ProfileSummary
from app.schemas.request import RequestResponse


class ChatMessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    request_id: uuid.UUID = Field(..., alias="requestId")
    content: str = Field(..., min_length=1, max_length=10000)
    message_type: Literal["text", "interpretation", "inquiry", "file"] = Field("text", alias="messageType")
    file_url: Optional[str] = Field(None, alias="fileUrl", max_length=500)


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    request_id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    message_type: str
    file_url: Optional[str] = None
    is_read: bool
    created_at: datetime
    sender: Optional[ProfileSummary] = None


class NotificationsResponse(BaseModel):
    unread_count: int
    unread_messages: List[ChatMessageResponse]
    open_requests: List[RequestResponse] = []

"""
CMS 페이지 스키마
"""

from datetime import datetime
from typing import Optional, Dict, Any
import uuid

from pydantic import BaseModel, ConfigDict, Field


class PageResponse(BaseModel):
    id: uuid.UUID
    page_key: str
    title: str
    content: str
    metadata: Optional[Dict[str, Any]] = None
    is_published: bool
    updated_at: Optional[datetime] = None


class PageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    is_published: Optional[bool] = Field(None, alias="isPublished")

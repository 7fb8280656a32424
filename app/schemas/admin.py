"""
관리자 스키마
"""

from datetime import datetime
from typing import Optional, Literal, Dict, Any
import uuid

from pydantic import BaseModel, ConfigDict, Field


class AdminUserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    role: Optional[Literal["dreamer", "interpreter", "admin", "super_admin"]] = None
    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    is_available: Optional[bool] = Field(None, alias="isAvailable")
    total_interpretations: Optional[int] = Field(None, alias="totalInterpretations", ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)


class MakeSuperAdminRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    user_id: uuid.UUID = Field(..., alias="userId")


class AdminStats(BaseModel):
    total_users: int
    users_by_role: Dict[str, int]
    total_dreams: int
    dreams_by_status: Dict[str, int]
    total_requests: int
    completed_requests: int
    total_plans: int
    active_subscriptions: int
    total_revenue: float
    succeeded_payments: int


class AdminLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    admin_id: uuid.UUID
    action: str
    target_type: str
    target_id: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

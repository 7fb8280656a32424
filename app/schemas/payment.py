"""
결제 관련 스키마
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    plan_id: uuid.UUID = Field(..., alias="planId")


class CheckoutResponse(BaseModel):
    url: str
    session_id: str = Field(..., serialization_alias="sessionId")


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    plan_id: Optional[uuid.UUID] = None
    plan_name: Optional[str] = None
    amount: float
    currency: str
    status: str
    provider: str
    reference: str
    paid_at: Optional[datetime] = None
    created_at: datetime

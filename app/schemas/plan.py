"""
플랜/구독 스키마
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


PlanScope = Literal["egypt", "international", "custom"]


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    currency: str
    scope: str
    country_codes: Optional[List[str]] = None
    duration_days: int
    max_dreams: Optional[int] = None
    max_interpretations: Optional[int] = None
    letter_quota: Optional[int] = None
    audio_minutes_quota: Optional[int] = None
    features: Optional[List[str]] = None
    is_active: bool
    is_trial: bool = False
    trial_duration_days: Optional[int] = None
    created_at: datetime


class _PlanFields(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    scope: Optional[PlanScope] = None
    country_codes: Optional[List[str]] = Field(None, alias="countryCodes")
    duration_days: Optional[int] = Field(None, alias="durationDays", ge=1)
    max_dreams: Optional[int] = Field(None, alias="maxDreams", ge=0)
    max_interpretations: Optional[int] = Field(None, alias="maxInterpretations", ge=0)
    letter_quota: Optional[int] = Field(None, alias="letterQuota", ge=0)
    audio_minutes_quota: Optional[int] = Field(None, alias="audioMinutesQuota", ge=0)
    features: Optional[List[str]] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_trial: Optional[bool] = Field(None, alias="isTrial")
    trial_duration_days: Optional[int] = Field(None, alias="trialDurationDays", ge=1)

    @field_validator("price", "currency", "scope", "duration_days", "is_active", "is_trial", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("null로 지정할 수 없는 항목입니다.")
        return v

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v):
        return v.upper() if v else v


class PlanCreate(_PlanFields):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=10)
    duration_days: int = Field(30, alias="durationDays", ge=1)


class PlanUpdate(_PlanFields):
    """플랜 이름은 변경할 수 없다 (필드 없음 → extra 금지로 400)"""
    pass


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    plan_id: uuid.UUID = Field(..., alias="planId")


class UsageSummary(BaseModel):
    letters_used: int
    letter_quota: Optional[int] = None
    letters_remaining: Optional[int] = None
    audio_minutes_used: int
    audio_minutes_quota: Optional[int] = None
    audio_minutes_remaining: Optional[int] = None
    dreams_used: int
    max_dreams: Optional[int] = None
    dreams_remaining: Optional[int] = None


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    plan_id: uuid.UUID
    started_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool
    letters_used: int
    audio_minutes_used: int
    plan: PlanResponse
    usage: Optional[UsageSummary] = None


class SubscribeResponse(BaseModel):
    success: bool
    subscription: SubscriptionResponse
    payment_reference: str

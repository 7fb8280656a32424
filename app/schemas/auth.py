"""
인증 관련 스키마
"""

from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.user import UserResponse, ProfileResponse
from app.schemas.plan import PlanResponse, SubscriptionResponse


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., alias="fullName", min_length=1, max_length=255)
    # 자가 가입 가능 역할은 서비스에서 다시 검사 (admin 계열은 403)
    role: Literal["dreamer", "interpreter", "admin", "super_admin"] = "dreamer"


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    user: UserResponse
    profile: ProfileResponse
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user: UserResponse
    profile: ProfileResponse
    current_plan: Optional[PlanResponse] = None
    subscription: Optional[SubscriptionResponse] = None

"""
플랜 API: 목록/생성/수정, 수동 구독, 내 구독 확인
"""

from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import require_roles
from app.core.security import AuthContext, get_current_user, get_current_user_optional
from app.models.subscription import UserPlan
from app.schemas.plan import (
    PlanCreate,
    PlanResponse,
    PlanUpdate,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionResponse,
    UsageSummary,
)
from app.services import plan_service, subscription_service

router = APIRouter()


async def subscription_response(db: AsyncSession, sub: UserPlan) -> SubscriptionResponse:
    resp = SubscriptionResponse.model_validate(sub)
    resp.usage = UsageSummary(**await subscription_service.get_usage_summary(db, sub))
    return resp


@router.get("", response_model=List[PlanResponse])
async def get_plans(
    include_inactive: bool = Query(False, alias="includeInactive"),
    current_user: Optional[AuthContext] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """플랜 목록 (비활성 플랜은 관리자만)"""
    show_inactive = include_inactive and current_user is not None and current_user.is_admin
    return await plan_service.list_plans(db, include_inactive=show_inactive)


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanCreate,
    current_user: AuthContext = Depends(require_roles("super_admin")),
    db: AsyncSession = Depends(get_db),
):
    """플랜 생성 (super_admin 전용)"""
    return await plan_service.create_plan(db, current_user, body)


@router.get("/me", response_model=Optional[SubscriptionResponse])
async def get_my_subscription(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """내 유효 구독 (없으면 null)"""
    sub = await subscription_service.get_effective_subscription(db, current_user.user_id)
    if sub is None:
        return None
    return await subscription_response(db, sub)


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    body: SubscribeRequest,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """수동 구독 (결제 없이 즉시 활성화)"""
    _, reference = await plan_service.subscribe_manually(db, current_user, body.plan_id)
    sub = await subscription_service.get_effective_subscription(db, current_user.user_id)
    return SubscribeResponse(
        success=True,
        subscription=await subscription_response(db, sub),
        payment_reference=reference,
    )


@router.patch("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: uuid.UUID,
    body: PlanUpdate,
    current_user: AuthContext = Depends(require_roles("admin", "super_admin")),
    db: AsyncSession = Depends(get_db),
):
    """플랜 수정 (한도/활성화 등, 이름 변경 불가)"""
    return await plan_service.update_plan(db, current_user, plan_id, body)

"""
플랜 관리 + 수동 구독 서비스
"""

from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationAppError
from app.core.security import AuthContext
from app.models.admin_log import AdminLog
from app.models.subscription import Plan, UserPlan
from app.schemas.plan import PlanCreate, PlanUpdate
from app.services import subscription_service

logger = logging.getLogger(__name__)


async def list_plans(db: AsyncSession, include_inactive: bool = False) -> List[Plan]:
    query = select(Plan)
    if not include_inactive:
        query = query.where(Plan.is_active == True)
    result = await db.execute(query.order_by(Plan.price.asc(), Plan.created_at.asc()))
    return list(result.scalars().all())


async def get_plan(db: AsyncSession, plan_id: uuid.UUID) -> Plan:
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("플랜을 찾을 수 없습니다.")
    return plan


async def get_plan_by_name(db: AsyncSession, name: str) -> Optional[Plan]:
    result = await db.execute(select(Plan).where(Plan.name == name))
    return result.scalar_one_or_none()


def _validate_trial(plan: Plan) -> None:
    if plan.is_trial and not plan.trial_duration_days:
        raise ValidationAppError("체험 플랜에는 trial_duration_days가 필요합니다.")


async def create_plan(db: AsyncSession, ctx: AuthContext, data: PlanCreate) -> Plan:
    if await get_plan_by_name(db, data.name):
        raise ConflictError("같은 이름의 플랜이 이미 있습니다.", code="PLAN_EXISTS")

    values = data.model_dump(exclude_unset=True)
    values.setdefault("currency", data.currency)
    values.setdefault("duration_days", data.duration_days)
    values = {k: v for k, v in values.items() if v is not None}
    plan = Plan(**values)
    _validate_trial(plan)
    db.add(plan)
    await db.flush()
    db.add(AdminLog(
        admin_id=ctx.user_id,
        action="plan_create",
        target_type="plan",
        target_id=str(plan.id),
        details={"name": plan.name},
    ))
    await db.commit()
    await db.refresh(plan)
    logger.info(f"플랜 생성: {plan.name} by={ctx.user_id}")
    return plan


async def update_plan(db: AsyncSession, ctx: AuthContext, plan_id: uuid.UUID, data: PlanUpdate) -> Plan:
    """한도/활성화 등 수정. 이름은 스키마에서 받지 않는다."""
    plan = await get_plan(db, plan_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationAppError("변경할 항목이 없습니다.")

    for field, value in changes.items():
        setattr(plan, field, value)
    _validate_trial(plan)

    db.add(AdminLog(
        admin_id=ctx.user_id,
        action="plan_update",
        target_type="plan",
        target_id=str(plan.id),
        details={k: (str(v) if v is not None and not isinstance(v, (int, float, bool, list, str)) else v)
                 for k, v in changes.items()},
    ))
    await db.commit()
    await db.refresh(plan)
    return plan


async def subscribe_manually(
    db: AsyncSession,
    ctx: AuthContext,
    plan_id: uuid.UUID,
) -> Tuple[UserPlan, str]:
    """결제 없이 바로 활성화하는 수동 구독 (provider=manual, reference=SUB-<uuid>)"""
    plan = await get_plan(db, plan_id)
    if not plan.is_active:
        raise ValidationAppError("비활성화된 플랜입니다.", code="PLAN_INACTIVE")

    reference = f"SUB-{uuid.uuid4()}"
    user_plan, _ = await subscription_service.activate_subscription(
        db,
        ctx.user_id,
        plan,
        reference=reference,
        provider="manual",
        amount=plan.price,
        currency=plan.currency,
        metadata={"source": "manual_subscribe"},
    )
    await db.commit()
    return user_plan, reference

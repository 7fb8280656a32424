"""
관리자 집계/사용자 관리 서비스
"""

from typing import List, Dict
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.exceptions import NotFoundError, ValidationAppError
from app.core.security import AuthContext
from app.models.admin_log import AdminLog
from app.models.dream import Dream, DREAM_STATUSES
from app.models.payment import Payment
from app.models.request import InterpretationRequest
from app.models.subscription import Plan, UserPlan
from app.models.user import Profile, USER_ROLES
from app.schemas.admin import AdminUserUpdate

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, query) -> int:
    return int((await db.execute(query)).scalar() or 0)


async def get_stats(db: AsyncSession) -> Dict:
    """대시보드 통계"""
    role_rows = (await db.execute(select(Profile.role, func.count(Profile.id)).group_by(Profile.role))).all()
    users_by_role = {r: 0 for r in USER_ROLES}
    for role, count in role_rows:
        users_by_role[role] = int(count)

    status_rows = (await db.execute(select(Dream.status, func.count(Dream.id)).group_by(Dream.status))).all()
    dreams_by_status = {s: 0 for s in DREAM_STATUSES}
    for status, count in status_rows:
        dreams_by_status[status] = int(count)

    now = utcnow()
    revenue_row = (await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0), func.count(Payment.id))
        .where(Payment.status == "succeeded")
    )).one()

    return {
        "total_users": sum(users_by_role.values()),
        "users_by_role": users_by_role,
        "total_dreams": sum(dreams_by_status.values()),
        "dreams_by_status": dreams_by_status,
        "total_requests": await _count(db, select(func.count(InterpretationRequest.id))),
        "completed_requests": await _count(
            db, select(func.count(InterpretationRequest.id)).where(InterpretationRequest.status == "completed")
        ),
        "total_plans": await _count(db, select(func.count(Plan.id))),
        "active_subscriptions": await _count(
            db,
            select(func.count(UserPlan.id)).where(
                UserPlan.is_active == True,
                (UserPlan.expires_at.is_(None)) | (UserPlan.expires_at > now),
            ),
        ),
        "total_revenue": float(revenue_row[0] or 0),
        "succeeded_payments": int(revenue_row[1] or 0),
    }


async def list_users(db: AsyncSession, role: str = None, skip: int = 0, limit: int = 100) -> List[Profile]:
    query = select(Profile)
    if role:
        query = query.where(Profile.role == role)
    result = await db.execute(query.order_by(Profile.created_at.desc()).offset(skip).limit(limit))
    return list(result.scalars().all())


async def _get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("프로필을 찾을 수 없습니다.")
    return profile


async def update_user(db: AsyncSession, ctx: AuthContext, user_id: uuid.UUID, data: AdminUserUpdate) -> Profile:
    """super_admin 사용자 수정. 역할 변경은 관리자 로그에 남긴다."""
    profile = await _get_profile(db, user_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationAppError("변경할 항목이 없습니다.")

    previous_role = profile.role
    for field, value in changes.items():
        setattr(profile, field, value)

    db.add(AdminLog(
        admin_id=ctx.user_id,
        action="role_change" if "role" in changes and changes["role"] != previous_role else "user_update",
        target_type="profile",
        target_id=str(profile.id),
        details={"changes": changes, "previous_role": previous_role},
    ))
    await db.commit()
    await db.refresh(profile)
    logger.info(f"사용자 수정: target={user_id} by={ctx.user_id} fields={list(changes)}")
    return profile


async def make_super_admin(db: AsyncSession, ctx: AuthContext, user_id: uuid.UUID) -> Profile:
    profile = await _get_profile(db, user_id)
    previous_role = profile.role
    profile.role = "super_admin"
    db.add(AdminLog(
        admin_id=ctx.user_id,
        action="make_super_admin",
        target_type="profile",
        target_id=str(profile.id),
        details={"previous_role": previous_role},
    ))
    await db.commit()
    await db.refresh(profile)
    logger.info(f"super_admin 승격: target={user_id} by={ctx.user_id}")
    return profile


async def list_admin_logs(db: AsyncSession, limit: int = 100) -> List[AdminLog]:
    result = await db.execute(select(AdminLog).order_by(AdminLog.created_at.desc()).limit(limit))
    return list(result.scalars().all())

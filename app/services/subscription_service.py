"""
구독/사용량 원장 서비스

- 유효 구독 조회 (활성 + 미만료, started_at 최신 우선)
- 글자 수/음성 분 한도 확인 및 차감 (호출자 트랜잭션 안에서 조건부 UPDATE)
- 결제/수동 구독 활성화 (결제 참조 기준 멱등)
- 신규 꿈꾼이 체험 플랜 부여

커밋은 하지 않는다. 차감과 콘텐츠 생성은 호출자가 한 번에 커밋해야 한다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple
import logging
import unicodedata
import uuid

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import utcnow
from app.core.exceptions import QuotaExceededError
from app.core.security import AuthContext
from app.models.dream import Dream
from app.models.payment import Payment
from app.models.subscription import Plan, UserPlan
from app.models.user import Profile

logger = logging.getLogger(__name__)


NO_ACTIVE_SUBSCRIPTION = "NO_ACTIVE_SUBSCRIPTION"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
AUDIO_QUOTA_EXCEEDED = "AUDIO_QUOTA_EXCEEDED"
MAX_DREAMS_REACHED = "MAX_DREAMS_REACHED"


@dataclass
class QuotaDecision:
    allowed: bool
    reason: Optional[str] = None
    subscription: Optional[UserPlan] = None
    bypassed: bool = False

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise QuotaExceededError(self.reason)


def count_letters(text: Optional[str]) -> int:
    """NFC 정규화 후 코드포인트 수. 바이트 길이가 아니다."""
    if not text:
        return 0
    return len(unicodedata.normalize("NFC", text))


async def get_effective_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Optional[UserPlan]:
    """활성이면서 만료되지 않은 구독 중 가장 최근에 시작된 것"""
    now = now or utcnow()
    result = await db.execute(
        select(UserPlan)
        .options(selectinload(UserPlan.plan))
        .where(
            UserPlan.user_id == user_id,
            UserPlan.is_active == True,
            or_(UserPlan.expires_at.is_(None), UserPlan.expires_at > now),
        )
        .order_by(UserPlan.started_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def count_dreams_since(db: AsyncSession, user_id: uuid.UUID, since: datetime) -> int:
    result = await db.execute(
        select(func.count(Dream.id)).where(
            Dream.dreamer_id == user_id,
            Dream.created_at >= since,
        )
    )
    return int(result.scalar() or 0)


async def check_and_reserve(
    db: AsyncSession,
    ctx: AuthContext,
    letters: int,
    audio_minutes: int = 0,
    *,
    new_dream: bool = True,
    now: Optional[datetime] = None,
) -> QuotaDecision:
    """한도 확인 후 허용이면 카운터를 증가시킨다 (커밋은 호출자).

    거절 사유 확인 순서: 구독 없음 → 글자 수 → 음성 분 → 최대 꿈 수.
    admin/super_admin은 차감 없이 항상 허용.
    """
    if ctx.is_admin:
        return QuotaDecision(allowed=True, bypassed=True)

    sub = await get_effective_subscription(db, ctx.user_id, now)
    if sub is None:
        return QuotaDecision(allowed=False, reason=NO_ACTIVE_SUBSCRIPTION)

    plan = sub.plan
    letters = max(0, int(letters or 0))
    audio_minutes = max(0, int(audio_minutes or 0))

    if plan.letter_quota is not None and sub.letters_used + letters > plan.letter_quota:
        return QuotaDecision(allowed=False, reason=QUOTA_EXCEEDED, subscription=sub)

    if audio_minutes > 0 and plan.audio_minutes_quota is not None:
        if sub.audio_minutes_used + audio_minutes > plan.audio_minutes_quota:
            return QuotaDecision(allowed=False, reason=AUDIO_QUOTA_EXCEEDED, subscription=sub)

    if new_dream and plan.max_dreams is not None:
        created = await count_dreams_since(db, ctx.user_id, sub.started_at)
        if created >= plan.max_dreams:
            return QuotaDecision(allowed=False, reason=MAX_DREAMS_REACHED, subscription=sub)

    if letters == 0 and audio_minutes == 0:
        return QuotaDecision(allowed=True, subscription=sub)

    # 동시 요청이 오래된 카운터로 함께 통과하지 못하도록 한도 조건을 UPDATE에 건다
    stmt = update(UserPlan).where(UserPlan.id == sub.id, UserPlan.is_active == True)
    if plan.letter_quota is not None:
        stmt = stmt.where(UserPlan.letters_used + letters <= plan.letter_quota)
    if audio_minutes > 0 and plan.audio_minutes_quota is not None:
        stmt = stmt.where(UserPlan.audio_minutes_used + audio_minutes <= plan.audio_minutes_quota)
    stmt = stmt.values(
        letters_used=UserPlan.letters_used + letters,
        audio_minutes_used=UserPlan.audio_minutes_used + audio_minutes,
        updated_at=utcnow(),
    ).execution_options(synchronize_session=False)

    result = await db.execute(stmt)
    if result.rowcount != 1:
        reason = QUOTA_EXCEEDED if letters > 0 else AUDIO_QUOTA_EXCEEDED
        logger.info(f"동시 차감 경합으로 한도 거절: user={ctx.user_id} reason={reason}")
        return QuotaDecision(allowed=False, reason=reason, subscription=sub)

    return QuotaDecision(allowed=True, subscription=sub)


async def reserve_or_raise(
    db: AsyncSession,
    ctx: AuthContext,
    letters: int,
    audio_minutes: int = 0,
    *,
    new_dream: bool = True,
) -> QuotaDecision:
    decision = await check_and_reserve(db, ctx, letters, audio_minutes, new_dream=new_dream)
    decision.raise_for_denial()
    if decision.bypassed:
        logger.info(f"관리자 한도 면제: user={ctx.user_id} role={ctx.role} letters={letters}")
    return decision


def _expiry_from(now: datetime, days: Optional[int]) -> Optional[datetime]:
    if not days:
        return None
    return now + timedelta(days=int(days))


async def _bind_plan(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan: Plan,
    now: datetime,
    expires_at: Optional[datetime],
) -> UserPlan:
    """(user, plan) 구독을 생성 또는 초기화하고 나머지 활성 구독은 비활성화한다"""
    # 사용자당 활성 구독은 하나만 유지
    await db.execute(
        update(UserPlan)
        .where(
            UserPlan.user_id == user_id,
            UserPlan.plan_id != plan.id,
            UserPlan.is_active == True,
        )
        .values(is_active=False, updated_at=now)
        .execution_options(synchronize_session="evaluate")
    )

    result = await db.execute(
        select(UserPlan).where(UserPlan.user_id == user_id, UserPlan.plan_id == plan.id)
    )
    user_plan = result.scalar_one_or_none()
    if user_plan is None:
        user_plan = UserPlan(user_id=user_id, plan_id=plan.id)
        db.add(user_plan)

    user_plan.is_active = True
    user_plan.started_at = now
    user_plan.expires_at = expires_at
    user_plan.letters_used = 0
    user_plan.audio_minutes_used = 0

    profile = await db.get(Profile, user_id)
    if profile is not None:
        profile.current_plan_id = plan.id
    await db.flush()
    return user_plan


async def get_payment_by_reference(db: AsyncSession, reference: str) -> Optional[Payment]:
    result = await db.execute(select(Payment).where(Payment.reference == reference))
    return result.scalar_one_or_none()


async def activate_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan: Plan,
    *,
    reference: str,
    provider: str,
    amount: Optional[Decimal] = None,
    currency: Optional[str] = None,
    metadata: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> Tuple[Optional[UserPlan], bool]:
    """결제 참조 기준 멱등 구독 활성화.

    같은 reference의 결제가 이미 있으면 아무것도 바꾸지 않고 (None, False).
    동시에 같은 reference가 들어오면 payments.reference UNIQUE 위반이
    flush 시점에 IntegrityError로 올라온다.
    """
    if await get_payment_by_reference(db, reference) is not None:
        logger.info(f"이미 처리된 결제 참조, 구독 활성화 생략: {reference}")
        return None, False

    now = now or utcnow()
    payment = Payment(
        user_id=user_id,
        plan_id=plan.id,
        amount=amount if amount is not None else plan.price,
        currency=(currency or plan.currency or "USD").upper(),
        status="succeeded",
        provider=provider,
        reference=reference,
        payment_metadata=metadata or {},
        paid_at=now,
    )
    db.add(payment)
    await db.flush()

    user_plan = await _bind_plan(db, user_id, plan, now, _expiry_from(now, plan.duration_days))
    logger.info(f"구독 활성화: user={user_id} plan={plan.name} provider={provider} ref={reference}")
    return user_plan, True


async def get_trial_plan(db: AsyncSession) -> Optional[Plan]:
    result = await db.execute(
        select(Plan)
        .where(
            Plan.is_active == True,
            Plan.is_trial == True,
            Plan.trial_duration_days.is_not(None),
        )
        .order_by(Plan.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def grant_trial_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Optional[UserPlan]:
    """신규 꿈꾼이에게 체험 플랜 부여. 체험 플랜이 없으면 None (오류 아님)."""
    trial_plan = await get_trial_plan(db)
    if trial_plan is None:
        logger.info(f"활성 체험 플랜이 없어 체험 구독 생략: user={user_id}")
        return None

    now = now or utcnow()
    user_plan = await _bind_plan(db, user_id, trial_plan, now, _expiry_from(now, trial_plan.trial_duration_days))
    logger.info(f"체험 구독 부여: user={user_id} plan={trial_plan.name} days={trial_plan.trial_duration_days}")
    return user_plan


async def get_usage_summary(db: AsyncSession, sub: UserPlan) -> dict:
    """구독 사용량 요약 (한도 None은 무제한)"""
    plan = sub.plan
    dreams_used = await count_dreams_since(db, sub.user_id, sub.started_at)

    def _remaining(quota, used):
        return None if quota is None else max(0, quota - used)

    return {
        "letters_used": sub.letters_used,
        "letter_quota": plan.letter_quota,
        "letters_remaining": _remaining(plan.letter_quota, sub.letters_used),
        "audio_minutes_used": sub.audio_minutes_used,
        "audio_minutes_quota": plan.audio_minutes_quota,
        "audio_minutes_remaining": _remaining(plan.audio_minutes_quota, sub.audio_minutes_used),
        "dreams_used": dreams_used,
        "max_dreams": plan.max_dreams,
        "dreams_remaining": _remaining(plan.max_dreams, dreams_used),
    }

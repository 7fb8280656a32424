"""
Stripe 결제 연동 서비스

- Checkout 세션 생성 (일회성 결제, 금액은 최소 통화 단위)
- 웹훅 서명 검증 → 이벤트 처리 (결제 참조 기준 멱등)
"""

from decimal import Decimal
from typing import List, Optional, Tuple
import asyncio
import json
import logging
import uuid

import stripe
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import (
    AppError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationAppError,
)
from app.core.security import AuthContext
from app.models.payment import Payment
from app.models.subscription import Plan
from app.models.user import Profile
from app.services import subscription_service

logger = logging.getLogger(__name__)


def _configure_stripe() -> None:
    if not settings.stripe_enabled:
        raise ServiceUnavailableError("결제 시스템이 설정되지 않았습니다.", code="STRIPE_NOT_CONFIGURED")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def to_minor_units(price) -> int:
    return int((Decimal(str(price)) * 100).quantize(Decimal("1")))


def _parse_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value)) if value else None
    except ValueError:
        return None


async def create_checkout_session(db: AsyncSession, ctx: AuthContext, plan_id: uuid.UUID) -> Tuple[str, str]:
    """Stripe Checkout 세션 생성. 반환: (url, session_id)"""
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("플랜을 찾을 수 없습니다.")
    if not plan.is_active:
        raise ValidationAppError("비활성화된 플랜입니다.", code="PLAN_INACTIVE")

    _configure_stripe()

    profile = await db.get(Profile, ctx.user_id)
    metadata = {
        "user_id": str(ctx.user_id),
        "plan_id": str(plan.id),
        "duration_days": str(plan.duration_days),
    }
    params = dict(
        mode="payment",
        payment_method_types=["card"],
        customer_email=profile.email if profile else ctx.email,
        line_items=[{
            "price_data": {
                "currency": plan.currency.lower(),
                "product_data": {
                    "name": plan.name,
                    "description": plan.description or plan.name,
                },
                "unit_amount": to_minor_units(plan.price),
            },
            "quantity": 1,
        }],
        success_url=f"{settings.FRONTEND_BASE_URL}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.FRONTEND_BASE_URL}/plans?canceled=true",
        metadata=metadata,
        payment_intent_data={"metadata": metadata},
    )

    # Stripe SDK는 동기 호출이므로 executor에서 실행
    loop = asyncio.get_running_loop()
    try:
        session = await loop.run_in_executor(None, lambda: stripe.checkout.Session.create(**params))
    except stripe.StripeError as e:
        logger.error(f"Stripe 세션 생성 실패: user={ctx.user_id} plan={plan.id} err={e}")
        raise AppError("결제 세션 생성에 실패했습니다.", code="STRIPE_ERROR", status_code=502)

    logger.info(f"Checkout 세션 생성: session={session.id} user={ctx.user_id} plan={plan.name}")
    return session.url, session.id


def verify_webhook(payload: bytes, sig_header: Optional[str]) -> dict:
    """서명 검증 후 이벤트 JSON 반환. 검증 전에는 어떤 부작용도 없다."""
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise ServiceUnavailableError("웹훅 시크릿이 설정되지 않았습니다.", code="STRIPE_NOT_CONFIGURED")
    if not sig_header:
        raise ValidationAppError("Stripe 서명 헤더가 없습니다.", code="INVALID_SIGNATURE")

    try:
        payload_str = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationAppError("잘못된 웹훅 페이로드입니다.", code="INVALID_PAYLOAD")

    try:
        stripe.WebhookSignature.verify_header(
            payload_str,
            sig_header,
            settings.STRIPE_WEBHOOK_SECRET,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        )
    except stripe.SignatureVerificationError:
        logger.warning("Stripe 웹훅 서명 검증 실패")
        raise ValidationAppError("웹훅 서명이 유효하지 않습니다.", code="INVALID_SIGNATURE")

    try:
        return json.loads(payload_str)
    except ValueError:
        raise ValidationAppError("잘못된 웹훅 페이로드입니다.", code="INVALID_PAYLOAD")


async def _handle_checkout_completed(db: AsyncSession, session_obj: dict) -> None:
    reference = session_obj.get("id")
    metadata = session_obj.get("metadata") or {}
    user_id = _parse_uuid(metadata.get("user_id"))
    plan_id = _parse_uuid(metadata.get("plan_id"))
    if not reference or not user_id or not plan_id:
        logger.warning(f"checkout.session.completed 메타데이터 누락: session={reference}")
        return

    if session_obj.get("payment_status") not in (None, "paid", "no_payment_required"):
        logger.info(f"결제 미완료 세션 무시: session={reference} status={session_obj.get('payment_status')}")
        return

    plan = await db.get(Plan, plan_id)
    profile = await db.get(Profile, user_id)
    if plan is None or profile is None:
        logger.warning(f"웹훅 대상 플랜/사용자 없음: session={reference} user={user_id} plan={plan_id}")
        return

    amount_total = session_obj.get("amount_total")
    amount = Decimal(amount_total) / 100 if amount_total is not None else Decimal(plan.price)
    currency = (session_obj.get("currency") or plan.currency).upper()
    try:
        _, created = await subscription_service.activate_subscription(
            db,
            user_id,
            plan,
            reference=reference,
            provider="stripe",
            amount=amount,
            currency=currency,
            metadata={
                "stripe_session_id": reference,
                "payment_intent": session_obj.get("payment_intent"),
                "customer_email": session_obj.get("customer_email"),
            },
        )
        await db.commit()
    except IntegrityError:
        # 같은 세션이 동시에 두 번 전달된 경우: 먼저 커밋된 쪽이 유효
        await db.rollback()
        logger.info(f"중복 웹훅(동시 전달) 무시: session={reference}")
        return

    if created:
        logger.info(f"Stripe 결제 완료 처리: session={reference} user={user_id} plan={plan.name}")


async def _handle_payment_failed(db: AsyncSession, intent: dict) -> None:
    reference = intent.get("id")
    metadata = intent.get("metadata") or {}
    user_id = _parse_uuid(metadata.get("user_id"))
    if not reference or not user_id:
        logger.info(f"사용자 메타데이터 없는 결제 실패 이벤트 무시: intent={reference}")
        return
    if await subscription_service.get_payment_by_reference(db, reference) is not None:
        return
    if await db.get(Profile, user_id) is None:
        return

    plan_id = _parse_uuid(metadata.get("plan_id"))
    if plan_id is not None and await db.get(Plan, plan_id) is None:
        plan_id = None
    error = intent.get("last_payment_error") or {}
    db.add(Payment(
        user_id=user_id,
        plan_id=plan_id,
        amount=Decimal(intent.get("amount") or 0) / 100,
        currency=(intent.get("currency") or "usd").upper(),
        status="failed",
        provider="stripe",
        reference=reference,
        payment_metadata={"failure_message": error.get("message")},
    ))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return
    logger.warning(f"Stripe 결제 실패 기록: intent={reference} user={user_id}")


async def handle_webhook_event(db: AsyncSession, event: dict) -> None:
    event_type = event.get("type")
    data_object = (event.get("data") or {}).get("object") or {}
    logger.info(f"Stripe 웹훅 수신: type={event_type} id={event.get('id')}")

    if event_type == "checkout.session.completed":
        await _handle_checkout_completed(db, data_object)
    elif event_type == "payment_intent.payment_failed":
        await _handle_payment_failed(db, data_object)


async def list_payment_history(db: AsyncSession, user_id: uuid.UUID) -> List[Payment]:
    result = await db.execute(
        select(Payment)
        .options(selectinload(Payment.plan))
        .where(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())

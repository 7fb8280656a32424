"""
결제 관련 API 엔드포인트 (Stripe)
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.payment import CheckoutRequest, CheckoutResponse, PaymentResponse
from app.services import payment_service

router = APIRouter()


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
    body: CheckoutRequest,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Stripe Checkout 세션 생성

    결제 완료 후 구독 활성화는 웹훅(checkout.session.completed)에서 처리합니다.
    """
    url, session_id = await payment_service.create_checkout_session(db, current_user, body.plan_id)
    return CheckoutResponse(url=url, session_id=session_id)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Stripe 웹훅 처리

    서명 검증 실패 시 400 (부작용 없음). 같은 이벤트가 여러 번 와도
    결제 참조 기준으로 한 번만 반영됩니다.
    """
    payload = await request.body()
    event = payment_service.verify_webhook(payload, request.headers.get("stripe-signature"))
    await payment_service.handle_webhook_event(db, event)
    return {"received": True}


@router.get("/history", response_model=List[PaymentResponse])
async def get_payment_history(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """내 결제 내역"""
    payments = await payment_service.list_payment_history(db, current_user.user_id)
    return [
        PaymentResponse(
            id=p.id,
            plan_id=p.plan_id,
            plan_name=p.plan.name if p.plan else None,
            amount=float(p.amount),
            currency=p.currency,
            status=p.status,
            provider=p.provider,
            reference=p.reference,
            paid_at=p.paid_at,
            created_at=p.created_at,
        )
        for p in payments
    ]

"""
해몽 요청 서비스
"""

from typing import List
import logging
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import utcnow
from app.core.exceptions import NotFoundError, ValidationAppError
from app.core.permissions import (
    authorize_request_update,
    ensure_can_view_request,
    ensure_dream_owner,
)
from app.core.security import AuthContext
from app.models.request import InterpretationRequest
from app.models.user import Profile
from app.schemas.request import RequestCreate, RequestUpdate
from app.services.dream_service import get_dream

logger = logging.getLogger(__name__)


def request_query():
    return select(InterpretationRequest).options(
        selectinload(InterpretationRequest.dream),
        selectinload(InterpretationRequest.dreamer),
        selectinload(InterpretationRequest.interpreter),
    )


async def get_request(db: AsyncSession, request_id: uuid.UUID) -> InterpretationRequest:
    result = await db.execute(
        request_query()
        .where(InterpretationRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    req = result.scalar_one_or_none()
    if req is None:
        raise NotFoundError("요청을 찾을 수 없습니다.")
    return req


async def get_request_for_user(db: AsyncSession, ctx: AuthContext, request_id: uuid.UUID) -> InterpretationRequest:
    req = await get_request(db, request_id)
    ensure_can_view_request(ctx, req)
    return req


async def list_requests(db: AsyncSession, ctx: AuthContext) -> List[InterpretationRequest]:
    query = request_query()
    if ctx.role == "interpreter":
        query = query.where(
            or_(
                InterpretationRequest.interpreter_id == ctx.user_id,
                InterpretationRequest.interpreter_id.is_(None),
            )
        )
    elif not ctx.is_admin:
        query = query.where(InterpretationRequest.dreamer_id == ctx.user_id)
    result = await db.execute(query.order_by(InterpretationRequest.created_at.desc()))
    return list(result.scalars().all())


async def create_request(db: AsyncSession, ctx: AuthContext, data: RequestCreate) -> InterpretationRequest:
    """꿈 작성자(또는 super_admin)만 요청을 만들 수 있다"""
    dream = await get_dream(db, data.dream_id)
    ensure_dream_owner(ctx, dream)

    req = InterpretationRequest(
        dream_id=dream.id,
        dreamer_id=dream.dreamer_id,
        interpreter_id=dream.interpreter_id,
        status="assigned" if dream.interpreter_id else "open",
        title=data.title,
        description=data.description,
        budget=data.budget,
    )
    db.add(req)
    await db.commit()
    logger.info(f"해몽 요청 생성: request={req.id} dream={dream.id}")
    return await get_request(db, req.id)


async def update_request(
    db: AsyncSession,
    ctx: AuthContext,
    request_id: uuid.UUID,
    data: RequestUpdate,
) -> InterpretationRequest:
    req = await get_request(db, request_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationAppError("변경할 항목이 없습니다.")

    authorize_request_update(ctx, req, changes.keys())

    if "interpreter_id" in changes:
        new_interpreter = changes["interpreter_id"]
        if new_interpreter is not None:
            target = await db.get(Profile, new_interpreter)
            if target is None or target.role != "interpreter":
                raise ValidationAppError("배정 대상이 해몽가가 아닙니다.", code="INVALID_INTERPRETER")
            if "status" not in changes:
                changes["status"] = "in_progress"
        req.interpreter_id = new_interpreter

    if "status" in changes:
        req.status = changes["status"]
        if changes["status"] == "completed":
            req.completed_at = utcnow()

    await db.commit()
    return await get_request(db, req.id)

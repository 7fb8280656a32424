"""
꿈 관련 서비스
"""

from typing import List, Optional, Dict
import logging
import math
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationAppError
from app.core.permissions import (
    authorize_dream_update,
    ensure_dream_owner,
    ensure_can_view_dream,
)
from app.core.security import AuthContext
from app.models.dream import Dream, DREAM_STATUSES
from app.models.user import Profile
from app.schemas.dream import DreamCreate, DreamUpdate, DreamAudioUpload
from app.services import subscription_service
from app.services.storage import get_storage

logger = logging.getLogger(__name__)


def _dream_query():
    return select(Dream).options(
        selectinload(Dream.dreamer),
        selectinload(Dream.interpreter),
    )


def _visible_filter(query, ctx: AuthContext):
    """역할별 목록 범위: 꿈꾼이=본인, 해몽가=배정+미배정, 관리자=전체"""
    if ctx.is_admin:
        return query
    if ctx.role == "interpreter":
        return query.where(or_(Dream.interpreter_id == ctx.user_id, Dream.interpreter_id.is_(None)))
    return query.where(Dream.dreamer_id == ctx.user_id)


async def get_dream(db: AsyncSession, dream_id: uuid.UUID) -> Dream:
    result = await db.execute(
        _dream_query()
        .where(Dream.id == dream_id)
        .execution_options(populate_existing=True)
    )
    dream = result.scalar_one_or_none()
    if dream is None:
        raise NotFoundError("꿈을 찾을 수 없습니다.")
    return dream


async def get_dream_for_user(db: AsyncSession, ctx: AuthContext, dream_id: uuid.UUID) -> Dream:
    dream = await get_dream(db, dream_id)
    ensure_can_view_dream(ctx, dream)
    return dream


async def list_dreams(db: AsyncSession, ctx: AuthContext, status: Optional[str] = None) -> List[Dream]:
    query = _visible_filter(_dream_query(), ctx)
    if status:
        query = query.where(Dream.status == status)
    result = await db.execute(query.order_by(Dream.created_at.desc()))
    return list(result.scalars().all())


async def get_dream_stats(db: AsyncSession, ctx: AuthContext) -> Dict:
    query = _visible_filter(select(Dream.status, func.count(Dream.id)), ctx).group_by(Dream.status)
    rows = (await db.execute(query)).all()
    by_status = {s: 0 for s in DREAM_STATUSES}
    for status, count in rows:
        by_status[status] = int(count)
    return {"total": sum(by_status.values()), "by_status": by_status}


async def create_dream(db: AsyncSession, ctx: AuthContext, data: DreamCreate) -> Dream:
    """꿈 생성. 한도 차감과 생성은 하나의 트랜잭션으로 커밋된다."""
    letters = subscription_service.count_letters(data.description)
    await subscription_service.reserve_or_raise(db, ctx, letters, data.audio_minutes, new_dream=True)

    dream = Dream(
        dreamer_id=ctx.user_id,
        title=data.title,
        content=data.description,
        dream_date=data.dream_date,
        mood=data.mood,
        status="new",
        dream_metadata=data.metadata or {},
    )
    db.add(dream)
    await db.commit()
    logger.info(f"꿈 생성: dream={dream.id} user={ctx.user_id} letters={letters}")
    return await get_dream(db, dream.id)


async def _ensure_interpreter_profile(db: AsyncSession, interpreter_id: uuid.UUID) -> None:
    target = await db.get(Profile, interpreter_id)
    if target is None or target.role != "interpreter":
        raise ValidationAppError("배정 대상이 해몽가가 아닙니다.", code="INVALID_INTERPRETER")


async def update_dream(db: AsyncSession, ctx: AuthContext, dream_id: uuid.UUID, data: DreamUpdate) -> Dream:
    dream = await get_dream(db, dream_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationAppError("변경할 항목이 없습니다.")

    # 권한 없는 필드가 하나라도 있으면 요청 전체를 거절
    authorize_dream_update(ctx, dream, changes.keys())

    if "interpreter_id" in changes:
        new_interpreter = changes["interpreter_id"]
        if new_interpreter is not None:
            await _ensure_interpreter_profile(db, new_interpreter)
            if "status" not in changes:
                changes["status"] = "pending_interpretation"
        dream.interpreter_id = new_interpreter

    for field in ("status", "interpretation", "notes"):
        if field in changes:
            setattr(dream, field, changes[field])

    await db.commit()
    return await get_dream(db, dream.id)


async def delete_dream(db: AsyncSession, ctx: AuthContext, dream_id: uuid.UUID) -> None:
    """꿈 삭제. 요청/메시지/댓글은 외래키 CASCADE."""
    dream = await get_dream(db, dream_id)
    ensure_dream_owner(ctx, dream)
    await db.delete(dream)
    await db.commit()
    logger.info(f"꿈 삭제: dream={dream_id} by={ctx.user_id}")


async def upload_dream_audio(
    db: AsyncSession,
    ctx: AuthContext,
    dream_id: uuid.UUID,
    data: DreamAudioUpload,
) -> Dream:
    """음성 녹음 첨부. 길이(분, 올림)만큼 음성 한도를 차감한다."""
    dream = await get_dream(db, dream_id)
    ensure_dream_owner(ctx, dream)

    minutes = math.ceil((data.duration or 0) / 60)
    await subscription_service.reserve_or_raise(db, ctx, 0, minutes, new_dream=False)

    url = get_storage().save_data_url(data.audio, kind="audio", folder="audio")
    dream.audio_url = url
    dream.audio_duration = data.duration
    await db.commit()
    logger.info(f"꿈 음성 업로드: dream={dream_id} minutes={minutes}")
    return await get_dream(db, dream.id)

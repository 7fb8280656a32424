"""
꿈 메시지 서비스 (꿈꾼이 ↔ 배정된 해몽가)
"""

from typing import List
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.permissions import ensure_can_view_dream, ensure_interpreter_assigned
from app.core.security import AuthContext
from app.models.message import Message
from app.schemas.message import MessageCreate
from app.services.dream_service import get_dream
from app.services.storage import get_storage


async def _get_thread_dream(db: AsyncSession, ctx: AuthContext, dream_id: uuid.UUID):
    dream = await get_dream(db, dream_id)
    # 배정 전에는 읽기/쓰기 모두 불가 (super_admin 제외)
    ensure_interpreter_assigned(ctx, dream.interpreter_id)
    ensure_can_view_dream(ctx, dream)
    return dream


async def _get_message(db: AsyncSession, message_id: uuid.UUID) -> Message:
    result = await db.execute(
        select(Message)
        .options(selectinload(Message.sender))
        .where(Message.id == message_id)
        .execution_options(populate_existing=True)
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise NotFoundError("메시지를 찾을 수 없습니다.")
    return message


async def list_messages(db: AsyncSession, ctx: AuthContext, dream_id: uuid.UUID) -> List[Message]:
    await _get_thread_dream(db, ctx, dream_id)
    result = await db.execute(
        select(Message)
        .options(selectinload(Message.sender))
        .where(Message.dream_id == dream_id)
        .order_by(Message.created_at.asc())
    )
    return list(result.scalars().all())


async def create_message(db: AsyncSession, ctx: AuthContext, data: MessageCreate) -> Message:
    await _get_thread_dream(db, ctx, data.dream_id)

    audio_url = None
    message_type = "text"
    if data.audio:
        audio_url = get_storage().save_data_url(data.audio, kind="audio", folder="audio")
        message_type = "audio"

    message = Message(
        dream_id=data.dream_id,
        sender_id=ctx.user_id,
        content=(data.content or "").strip(),
        message_type=message_type,
        audio_url=audio_url,
    )
    db.add(message)
    await db.commit()
    return await _get_message(db, message.id)


async def delete_message(db: AsyncSession, ctx: AuthContext, message_id: uuid.UUID) -> None:
    """보낸 사람만 삭제 가능. 해몽가 배정이 해제된 꿈의 메시지는 삭제할 수 없다."""
    message = await _get_message(db, message_id)
    dream = await get_dream(db, message.dream_id)
    ensure_interpreter_assigned(ctx, dream.interpreter_id)
    if str(message.sender_id) != str(ctx.user_id):
        raise ForbiddenError("본인이 보낸 메시지만 삭제할 수 있습니다.")
    await db.delete(message)
    await db.commit()

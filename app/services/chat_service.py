"""
요청 단위 채팅 서비스 + 알림 집계
"""

from typing import List, Dict
import uuid

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.permissions import ensure_can_view_request, ensure_interpreter_assigned
from app.core.security import AuthContext
from app.models.chat import ChatMessage
from app.models.request import InterpretationRequest
from app.schemas.chat import ChatMessageCreate
from app.services.request_service import get_request, request_query


async def _get_thread_request(db: AsyncSession, ctx: AuthContext, request_id: uuid.UUID) -> InterpretationRequest:
    req = await get_request(db, request_id)
    ensure_interpreter_assigned(ctx, req.interpreter_id)
    ensure_can_view_request(ctx, req)
    return req


async def get_chat_messages(db: AsyncSession, ctx: AuthContext, request_id: uuid.UUID) -> List[ChatMessage]:
    """채팅 메시지 조회 (오래된 순)"""
    await _get_thread_request(db, ctx, request_id)
    result = await db.execute(
        select(ChatMessage)
        .options(selectinload(ChatMessage.sender))
        .where(ChatMessage.request_id == request_id)
        .order_by(ChatMessage.created_at.asc())
    )
    return list(result.scalars().all())


async def send_chat_message(db: AsyncSession, ctx: AuthContext, data: ChatMessageCreate) -> ChatMessage:
    await _get_thread_request(db, ctx, data.request_id)
    message = ChatMessage(
        request_id=data.request_id,
        sender_id=ctx.user_id,
        content=data.content,
        message_type=data.message_type,
        file_url=data.file_url,
    )
    db.add(message)
    await db.commit()
    result = await db.execute(
        select(ChatMessage)
        .options(selectinload(ChatMessage.sender))
        .where(ChatMessage.id == message.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def mark_as_read(db: AsyncSession, ctx: AuthContext, request_id: uuid.UUID) -> int:
    """상대방이 보낸 메시지를 읽음 처리. 처리 건수 반환."""
    await _get_thread_request(db, ctx, request_id)
    result = await db.execute(
        update(ChatMessage)
        .where(
            ChatMessage.request_id == request_id,
            ChatMessage.sender_id != ctx.user_id,
            ChatMessage.is_read == False,
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def get_notifications(db: AsyncSession, ctx: AuthContext) -> Dict:
    """내가 참여한 요청의 안 읽은 메시지 + (해몽가) 미배정 공개 요청"""
    participant = or_(
        InterpretationRequest.dreamer_id == ctx.user_id,
        InterpretationRequest.interpreter_id == ctx.user_id,
    )
    result = await db.execute(
        select(ChatMessage)
        .options(selectinload(ChatMessage.sender))
        .join(InterpretationRequest, InterpretationRequest.id == ChatMessage.request_id)
        .where(
            participant,
            ChatMessage.sender_id != ctx.user_id,
            ChatMessage.is_read == False,
        )
        .order_by(ChatMessage.created_at.desc())
        .limit(50)
    )
    unread = list(result.scalars().all())

    open_requests = []
    if ctx.role == "interpreter":
        result = await db.execute(
            request_query()
            .where(
                InterpretationRequest.interpreter_id.is_(None),
                InterpretationRequest.status == "open",
            )
            .order_by(InterpretationRequest.created_at.desc())
            .limit(20)
        )
        open_requests = list(result.scalars().all())

    return {
        "unread_count": len(unread),
        "unread_messages": unread,
        "open_requests": open_requests,
    }

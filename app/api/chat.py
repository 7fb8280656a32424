"""
채팅 관련 API 라우터 (요청 단위 스레드)
"""

from typing import List
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.chat import ChatMessageCreate, ChatMessageResponse
from app.services import chat_service

router = APIRouter()


@router.get("", response_model=List[ChatMessageResponse])
async def get_chat_messages(
    request_id: uuid.UUID = Query(...),
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """채팅 메시지 조회"""
    return await chat_service.get_chat_messages(db, current_user, request_id)


@router.post("", response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_chat_message(
    body: ChatMessageCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """채팅 메시지 전송"""
    return await chat_service.send_chat_message(db, current_user, body)


@router.post("/{request_id}/read")
async def mark_chat_read(
    request_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """상대방 메시지 읽음 처리"""
    updated = await chat_service.mark_as_read(db, current_user, request_id)
    return {"updated": updated}

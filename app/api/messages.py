"""
꿈 메시지 API
"""

from typing import List
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.message import MessageCreate, MessageResponse
from app.services import message_service

router = APIRouter()


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    dream_id: uuid.UUID = Query(...),
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await message_service.list_messages(db, current_user, dream_id)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message(
    body: MessageCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """메시지 전송 (텍스트 또는 음성 data URL)"""
    return await message_service.create_message(db, current_user, body)


@router.delete("/{message_id}")
async def delete_message(
    message_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await message_service.delete_message(db, current_user, message_id)
    return {"message": "메시지가 삭제되었습니다."}

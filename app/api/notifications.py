"""
알림 API
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.chat import ChatMessageResponse, NotificationsResponse
from app.schemas.request import RequestResponse
from app.services import chat_service

router = APIRouter()


@router.get("", response_model=NotificationsResponse)
async def get_notifications(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """안 읽은 채팅 + (해몽가) 배정 대기 중인 요청"""
    data = await chat_service.get_notifications(db, current_user)
    return NotificationsResponse(
        unread_count=data["unread_count"],
        unread_messages=[ChatMessageResponse.model_validate(m) for m in data["unread_messages"]],
        open_requests=[RequestResponse.model_validate(r) for r in data["open_requests"]],
    )

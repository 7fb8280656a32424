"""
해몽 요청 API
"""

from typing import List
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.request import RequestCreate, RequestResponse, RequestUpdate
from app.services import request_service

router = APIRouter()


@router.get("", response_model=List[RequestResponse])
async def list_requests(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.list_requests(db, current_user)


@router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: RequestCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.create_request(db, current_user, body)


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.get_request_for_user(db, current_user, request_id)


@router.patch("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: uuid.UUID,
    body: RequestUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """상태 변경 / 해몽가 배정(관리자). completed는 완료 시각을 기록한다."""
    return await request_service.update_request(db, current_user, request_id, body)

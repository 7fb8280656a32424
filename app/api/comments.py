"""
댓글 API (조회는 공개)
"""

from typing import List
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.schemas.comment import CommentCreate, CommentResponse
from app.services import comment_service

router = APIRouter()


@router.get("", response_model=List[CommentResponse])
async def get_comments(
    dream_id: uuid.UUID = Query(...),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.get_dream_comments(db, dream_id, skip, limit)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CommentCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, current_user, body)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """작성자 또는 super_admin만 삭제"""
    await comment_service.delete_comment(db, current_user, comment_id)
    return {"message": "댓글이 삭제되었습니다."}

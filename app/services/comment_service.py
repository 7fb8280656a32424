"""
댓글 관련 서비스
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List
import uuid

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.security import AuthContext
from app.models.comment import Comment
from app.schemas.comment import CommentCreate
from app.services.dream_service import get_dream


async def get_comment(db: AsyncSession, comment_id: uuid.UUID) -> Comment:
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.id == comment_id)
        .execution_options(populate_existing=True)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("댓글을 찾을 수 없습니다.")
    return comment


async def get_dream_comments(
    db: AsyncSession,
    dream_id: uuid.UUID,
    skip: int = 0,
    limit: int = 50
) -> List[Comment]:
    """꿈 댓글 목록 조회 (공개)"""
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.dream_id == dream_id)
        .order_by(Comment.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_comment(db: AsyncSession, ctx: AuthContext, data: CommentCreate) -> Comment:
    """꿈 댓글 생성"""
    # 대상 꿈이 없으면 404
    await get_dream(db, data.dream_id)

    comment = Comment(
        dream_id=data.dream_id,
        user_id=ctx.user_id,
        content=data.content.strip(),
    )
    db.add(comment)
    await db.commit()
    return await get_comment(db, comment.id)


async def delete_comment(db: AsyncSession, ctx: AuthContext, comment_id: uuid.UUID) -> None:
    """작성자 또는 super_admin만 삭제"""
    comment = await get_comment(db, comment_id)
    if not (ctx.is_super_admin or str(comment.user_id) == str(ctx.user_id)):
        raise ForbiddenError("댓글을 삭제할 권한이 없습니다.")
    await db.delete(comment)
    await db.commit()

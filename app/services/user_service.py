"""
사용자 관련 서비스
"""

from typing import Optional, Union, Tuple, List
import logging
import uuid

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import utcnow
from app.core.exceptions import AuthenticationError, ConflictError, ForbiddenError, NotFoundError
from app.core.security import get_password_hash, verify_password
from app.models.user import User, Profile, SELF_SERVICE_ROLES
from app.services import subscription_service

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: Union[str, uuid.UUID]) -> Optional[User]:
    """ID로 사용자 조회"""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """이메일로 사용자 조회"""
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: Union[str, uuid.UUID]) -> Profile:
    """프로필 조회 (현재 플랜 포함). 없으면 404."""
    result = await db.execute(
        select(Profile)
        .options(selectinload(Profile.current_plan))
        .where(Profile.id == user_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("프로필을 찾을 수 없습니다.")
    return profile


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: str,
    role: str = "dreamer",
) -> Tuple[User, Profile]:
    """계정 + 프로필 생성. 꿈꾼이는 같은 트랜잭션에서 체험 구독을 받는다."""
    if role not in SELF_SERVICE_ROLES:
        raise ForbiddenError("해당 역할로는 가입할 수 없습니다.")

    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise ConflictError("이미 가입된 이메일입니다.", code="EMAIL_EXISTS")

    now = utcnow()
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()

    profile = Profile(
        id=user.id,
        email=email,
        full_name=full_name,
        role=role,
        created_at=now,
        updated_at=now,
    )
    db.add(profile)
    await db.flush()

    if role == "dreamer":
        await subscription_service.grant_trial_subscription(db, user.id, now=now)

    await db.commit()
    logger.info(f"회원가입 완료: user={user.id} role={role}")
    return user, await get_profile(db, user.id)


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Tuple[User, Profile]:
    """이메일/비밀번호 확인. 불일치는 어느 쪽이든 동일한 401."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("이메일 또는 비밀번호가 올바르지 않습니다.")
    return user, await get_profile(db, user.id)


async def update_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
    full_name: Optional[str] = None,
    bio: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Profile:
    """프로필 업데이트"""
    profile = await get_profile(db, user_id)
    if full_name is not None:
        profile.full_name = full_name
    if bio is not None:
        profile.bio = bio
    if avatar_url is not None:
        profile.avatar_url = avatar_url
    await db.commit()
    return await get_profile(db, user_id)


async def set_availability(db: AsyncSession, user_id: uuid.UUID, is_available: bool) -> Profile:
    profile = await get_profile(db, user_id)
    if profile.role != "interpreter":
        raise ForbiddenError("해몽가만 상담 가능 여부를 변경할 수 있습니다.")
    profile.is_available = is_available
    await db.commit()
    return await get_profile(db, user_id)


async def delete_account(db: AsyncSession, user_id: uuid.UUID) -> None:
    """계정 삭제. 프로필과 소유 콘텐츠는 외래키 CASCADE로 함께 삭제된다."""
    result = await db.execute(delete(User).where(User.id == user_id))
    if result.rowcount == 0:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    await db.commit()
    logger.info(f"계정 삭제: user={user_id}")


async def list_interpreters(db: AsyncSession, available_only: bool = False) -> List[Profile]:
    query = select(Profile).where(Profile.role == "interpreter")
    if available_only:
        query = query.where(Profile.is_available == True)
    result = await db.execute(query.order_by(Profile.full_name))
    return list(result.scalars().all())

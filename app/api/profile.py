"""
프로필 API
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, clear_session_cookie, get_current_user
from app.schemas.user import AvailabilityUpdate, AvatarUpload, ProfileResponse, ProfileUpdate
from app.services import user_service
from app.services.storage import get_storage

router = APIRouter()


@router.patch("/update", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_profile(
        db,
        current_user.user_id,
        full_name=body.full_name,
        bio=body.bio,
        avatar_url=body.avatar_url,
    )


@router.patch("/availability", response_model=ProfileResponse)
async def update_availability(
    body: AvailabilityUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """해몽가 상담 가능 여부"""
    return await user_service.set_availability(db, current_user.user_id, body.is_available)


@router.post("/upload-avatar", response_model=ProfileResponse)
async def upload_avatar(
    body: AvatarUpload,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """아바타 업로드 (image data URL)"""
    url = get_storage().save_data_url(body.avatar, kind="image", folder="avatars")
    return await user_service.update_profile(db, current_user.user_id, avatar_url=url)


@router.delete("/account")
async def delete_account(
    response: Response,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """계정 삭제 (프로필/콘텐츠 CASCADE) + 세션 쿠키 삭제"""
    await user_service.delete_account(db, current_user.user_id)
    clear_session_cookie(response)
    return {"message": "계정이 삭제되었습니다."}

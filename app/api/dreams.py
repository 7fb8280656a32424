"""
꿈 관련 API 라우터
"""

from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import AuthContext, get_current_user
from app.models.dream import Dream
from app.schemas.dream import (
    DreamAudioUpload,
    DreamCreate,
    DreamResponse,
    DreamStats,
    DreamUpdate,
)
from app.schemas.user import ProfileSummary
from app.services import dream_service

router = APIRouter()


def _to_response(dream: Dream) -> DreamResponse:
    return DreamResponse(
        id=dream.id,
        dreamer_id=dream.dreamer_id,
        interpreter_id=dream.interpreter_id,
        title=dream.title,
        content=dream.content,
        status=dream.status,
        interpretation=dream.interpretation,
        notes=dream.notes,
        dream_date=dream.dream_date,
        mood=dream.mood,
        audio_url=dream.audio_url,
        audio_duration=dream.audio_duration,
        metadata=dream.dream_metadata,
        created_at=dream.created_at,
        updated_at=dream.updated_at,
        dreamer=ProfileSummary.model_validate(dream.dreamer) if dream.dreamer else None,
        interpreter=ProfileSummary.model_validate(dream.interpreter) if dream.interpreter else None,
    )


@router.get("", response_model=List[DreamResponse])
async def list_dreams(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """꿈 목록 (꿈꾼이: 본인 / 해몽가: 배정+미배정 / 관리자: 전체)"""
    dreams = await dream_service.list_dreams(db, current_user, status=status_filter)
    return [_to_response(d) for d in dreams]


@router.post("", response_model=DreamResponse, status_code=status.HTTP_201_CREATED)
async def create_dream(
    body: DreamCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """꿈 등록. 구독 한도(글자 수/음성/최대 꿈 수)를 확인하고 차감한다."""
    dream = await dream_service.create_dream(db, current_user, body)
    return _to_response(dream)


@router.get("/stats", response_model=DreamStats)
async def get_dream_stats(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await dream_service.get_dream_stats(db, current_user)


@router.get("/{dream_id}", response_model=DreamResponse)
async def get_dream(
    dream_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    dream = await dream_service.get_dream_for_user(db, current_user, dream_id)
    return _to_response(dream)


@router.patch("/{dream_id}", response_model=DreamResponse)
async def update_dream(
    dream_id: uuid.UUID,
    body: DreamUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """상태/해몽/메모 수정, 해몽가 배정(관리자). 권한 없는 필드가 섞이면 전체 403."""
    dream = await dream_service.update_dream(db, current_user, dream_id, body)
    return _to_response(dream)


@router.post("/{dream_id}/audio", response_model=DreamResponse)
async def upload_dream_audio(
    dream_id: uuid.UUID,
    body: DreamAudioUpload,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """음성 녹음 업로드 (data URL)"""
    dream = await dream_service.upload_dream_audio(db, current_user, dream_id, body)
    return _to_response(dream)


@router.delete("/{dream_id}")
async def delete_dream(
    dream_id: uuid.UUID,
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await dream_service.delete_dream(db, current_user, dream_id)
    return {"message": "꿈이 삭제되었습니다."}

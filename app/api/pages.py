"""
CMS 페이지 API: 공개 조회 + 관리자(super_admin) 편집
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import require_roles
from app.core.security import AuthContext
from app.models.page_content import PageContent
from app.schemas.page import PageResponse, PageUpdate
from app.services import page_service

router = APIRouter()
admin_router = APIRouter()


def _to_response(page: PageContent) -> PageResponse:
    return PageResponse(
        id=page.id,
        page_key=page.page_key,
        title=page.title,
        content=page.content,
        metadata=page.page_metadata,
        is_published=page.is_published,
        updated_at=page.updated_at,
    )


@router.get("/{page_key}", response_model=PageResponse)
async def get_public_page(page_key: str, db: AsyncSession = Depends(get_db)):
    """공개 페이지 조회 (게시된 것만)"""
    return _to_response(await page_service.get_page(db, page_key, published_only=True))


@admin_router.get("", response_model=List[PageResponse])
async def list_pages(
    current_user: AuthContext = Depends(require_roles("super_admin")),
    db: AsyncSession = Depends(get_db),
):
    return [_to_response(p) for p in await page_service.list_pages(db)]


@admin_router.post("/seed")
async def seed_pages(
    current_user: AuthContext = Depends(require_roles("super_admin")),
    db: AsyncSession = Depends(get_db),
):
    """기본 페이지 생성 (이미 있는 page_key는 건너뜀)"""
    created = await page_service.seed_default_pages(db)
    return {"message": "기본 페이지 생성 완료", "created": created}


@admin_router.get("/{page_key}", response_model=PageResponse)
async def get_page(
    page_key: str,
    current_user: AuthContext = Depends(require_roles("super_admin")),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await page_service.get_page(db, page_key))


@admin_router.patch("/{page_key}", response_model=PageResponse)
async def update_page(
    page_key: str,
    body: PageUpdate,
    current_user: AuthContext = Depends(require_roles("super_admin")),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await page_service.update_page(db, page_key, body))

"""
관리자 API: 통계, 사용자 관리, 해몽가 목록, 작업 로그
"""

from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import require_roles
from app.core.security import AuthContext
from app.schemas.admin import AdminLogResponse, AdminStats, AdminUserUpdate, MakeSuperAdminRequest
from app.schemas.user import ProfileResponse
from app.services import admin_service, user_service

router = APIRouter()

require_admin = require_roles("admin", "super_admin")
require_super_admin = require_roles("super_admin")


@router.get("/stats", response_model=AdminStats)
async def get_stats(
    current_user: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_stats(db)


@router.get("/users", response_model=List[ProfileResponse])
async def list_users(
    role: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.list_users(db, role=role, skip=skip, limit=limit)


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: uuid.UUID,
    body: AdminUserUpdate,
    current_user: AuthContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """사용자 역할/정보 수정 (super_admin 전용, 관리자 로그 기록)"""
    return await admin_service.update_user(db, current_user, user_id, body)


@router.post("/make-super-admin", response_model=ProfileResponse)
async def make_super_admin(
    body: MakeSuperAdminRequest,
    current_user: AuthContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.make_super_admin(db, current_user, body.user_id)


@router.get("/interpreters", response_model=List[ProfileResponse])
async def list_interpreters(
    available_only: bool = Query(False, alias="availableOnly"),
    current_user: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """배정용 해몽가 목록"""
    return await user_service.list_interpreters(db, available_only=available_only)


@router.get("/logs", response_model=List[AdminLogResponse])
async def list_admin_logs(
    limit: int = Query(100, ge=1, le=500),
    current_user: AuthContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.list_admin_logs(db, limit=limit)

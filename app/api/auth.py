"""
인증 관련 API 라우터
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.plans import subscription_response
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.rate_limit import enforce_rate_limit
from app.core.security import (
    AuthContext,
    clear_session_cookie,
    create_access_token,
    get_current_user,
    set_session_cookie,
)
from app.schemas.auth import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from app.schemas.plan import PlanResponse
from app.schemas.user import ProfileResponse, UserResponse
from app.services import subscription_service, user_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _auth_response(response: Response, user, profile) -> AuthResponse:
    token = create_access_token(user.id, user.email, profile.role)
    set_session_cookie(response, token)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
        access_token=token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """회원가입 (dreamer/interpreter만 가능). 꿈꾼이는 체험 구독이 함께 생성된다."""
    await enforce_rate_limit(f"register:{_client_ip(request)}", settings.LOGIN_RATE_LIMIT_PER_MINUTE)
    user, profile = await user_service.register_user(
        db,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
    )
    return _auth_response(response, user, profile)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """로그인: 세션 쿠키 + 액세스 토큰"""
    bucket = f"login:{_client_ip(request)}:{body.email.lower()}"
    await enforce_rate_limit(bucket, settings.LOGIN_RATE_LIMIT_PER_MINUTE)
    user, profile = await user_service.authenticate_user(db, body.email, body.password)
    return _auth_response(response, user, profile)


@router.post("/logout")
async def logout(response: Response):
    """로그아웃 (세션 쿠키 삭제)"""
    clear_session_cookie(response)
    return {"message": "로그아웃되었습니다."}


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """현재 사용자 + 현재 플랜 + 유효 구독 사용량"""
    user = await user_service.get_user_by_id(db, current_user.user_id)
    if user is None:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    profile = await user_service.get_profile(db, current_user.user_id)
    sub = await subscription_service.get_effective_subscription(db, current_user.user_id)

    return MeResponse(
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
        current_plan=PlanResponse.model_validate(profile.current_plan) if profile.current_plan else None,
        subscription=await subscription_response(db, sub) if sub else None,
    )

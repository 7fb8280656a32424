"""
보안 관련 유틸리티 (비밀번호 해싱, JWT, 세션 쿠키, 현재 사용자 컨텍스트)
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings
from app.core.database import utcnow
from app.core.exceptions import AuthenticationError


ADMIN_ROLES = ("admin", "super_admin")

# 패스워드 해싱 컨텍스트
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# JWT 토큰 스키마 (쿠키 인증도 허용하므로 auto_error=False)
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """요청 단위 인증 컨텍스트. 역할은 토큰 발급 시점 기준이다."""
    user_id: uuid.UUID
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """패스워드 검증"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """패스워드 해싱"""
    return pwd_context.hash(password)


def create_access_token(user_id, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """액세스 토큰 생성"""
    expire = utcnow() + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """토큰 검증. 형식 오류/만료/서명 불일치는 모두 None."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None


def _context_from_payload(payload: Optional[dict]) -> Optional[AuthContext]:
    if not payload:
        return None
    try:
        return AuthContext(
            user_id=uuid.UUID(str(payload.get("sub"))),
            email=str(payload.get("email") or ""),
            role=str(payload.get("role") or "dreamer"),
        )
    except ValueError:
        return None


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Authorization: Bearer 헤더 우선, 없으면 세션 쿠키"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthContext:
    """현재 사용자 컨텍스트 (인증 필수)"""
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationError("인증 토큰이 없습니다.")
    ctx = _context_from_payload(verify_token(token, "access"))
    if ctx is None:
        raise AuthenticationError("인증 정보가 유효하지 않습니다.")
    return ctx


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthContext]:
    """현재 사용자 컨텍스트 (선택적 인증)"""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return _context_from_payload(verify_token(token, "access"))


def set_session_cookie(response: Response, token: str) -> None:
    """httpOnly 세션 쿠키 설정 (토큰 만료와 동일한 수명)"""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.JWT_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")

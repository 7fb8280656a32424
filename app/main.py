"""
꿈 해몽 마켓플레이스 - FastAPI 메인 애플리케이션
꿈 기록 → 해몽가 배정 → 메시지/채팅, 구독 한도와 Stripe 결제
"""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os
from app.core.config import settings
from app.core.database import engine, Base, test_db_connection, test_redis_connection
from app.core.exceptions import register_exception_handlers
from app.core.paths import get_upload_dir, get_project_root
from app import models  # noqa: F401  (Base.metadata 등록)

# API 라우터 임포트
from app.api.auth import router as auth_router
from app.api.profile import router as profile_router
from app.api.dreams import router as dreams_router
from app.api.messages import router as messages_router
from app.api.comments import router as comments_router
from app.api.requests import router as requests_router
from app.api.chat import router as chat_router
from app.api.notifications import router as notifications_router
from app.api.plans import router as plans_router
from app.api.payments import router as payments_router
from app.api.admin import router as admin_router
from app.api.pages import router as pages_router, admin_router as admin_pages_router

# 로깅 설정
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 시작/종료 시 실행되는 이벤트"""
    logger.info(f"🚀 꿈 해몽 API 시작 (environment={settings.ENVIRONMENT})")

    if settings.DATABASE_URL.startswith("sqlite"):
        os.makedirs(os.path.join(get_project_root(), "data"), exist_ok=True)

    # 데이터베이스 테이블 생성 (개발용, 운영은 마이그레이션)
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("📊 데이터베이스 테이블 생성 완료")

    if not settings.stripe_enabled:
        logger.warning("Stripe 키가 없어 결제 엔드포인트는 503을 반환합니다.")
    if settings.RATE_LIMIT_ENABLED and not await test_redis_connection():
        logger.warning("Redis 미연결: 로그인/가입 요청 제한은 통과 처리됩니다.")

    yield

    await engine.dispose()
    logger.info("👋 꿈 해몽 API 종료")


# FastAPI 앱 생성
app = FastAPI(
    title="꿈 해몽 마켓플레이스 API",
    description="꿈 기록, 해몽 요청, 구독/결제를 제공하는 REST API",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan
)
register_exception_handlers(app)

UPLOAD_DIR = get_upload_dir()
app.mount("/static", StaticFiles(directory=UPLOAD_DIR), name="static")

# CORS: 쿠키 세션을 쓰므로 명시된 오리진만 허용
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 라우터 등록
app.include_router(auth_router, prefix="/auth", tags=["인증"])
app.include_router(profile_router, prefix="/profile", tags=["프로필"])
app.include_router(dreams_router, prefix="/dreams", tags=["꿈"])
app.include_router(messages_router, prefix="/messages", tags=["메시지"])
app.include_router(comments_router, prefix="/comments", tags=["댓글"])
app.include_router(requests_router, prefix="/requests", tags=["해몽 요청"])
app.include_router(chat_router, prefix="/chat", tags=["채팅"])
app.include_router(notifications_router, prefix="/notifications", tags=["알림"])
app.include_router(plans_router, prefix="/plans", tags=["구독 플랜"])
app.include_router(payments_router, prefix="/payments", tags=["결제"])
app.include_router(admin_pages_router, prefix="/admin/pages", tags=["관리자 - 페이지"])
app.include_router(admin_router, prefix="/admin", tags=["관리자"])
app.include_router(pages_router, prefix="/pages", tags=["페이지"])


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "message": "꿈 해몽 마켓플레이스 API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """헬스 체크 엔드포인트"""
    db_ok = await test_db_connection()
    return {
        "status": "healthy" if db_ok else "unhealthy",
        "database": "connected" if db_ok else "disconnected",
        "environment": settings.ENVIRONMENT,
        "stripe": "configured" if settings.stripe_enabled else "disabled",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True if settings.ENVIRONMENT == "development" else False
    )

"""
애플리케이션 예외 및 전역 예외 핸들러

모든 오류 응답은 {"error": str, "code"?: str} 형태로 통일한다.
"""

from typing import Optional
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """처리된(예상 가능한) 애플리케이션 오류"""
    status_code: int = 500
    default_message: str = "요청을 처리할 수 없습니다."

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationAppError(AppError):
    status_code = 400
    default_message = "요청 값이 올바르지 않습니다."


class AuthenticationError(AppError):
    status_code = 401
    default_message = "인증 정보가 유효하지 않습니다."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "권한이 없습니다."


class NotFoundError(AppError):
    status_code = 404
    default_message = "대상을 찾을 수 없습니다."


class ConflictError(AppError):
    status_code = 409
    default_message = "이미 존재하는 항목입니다."


class RateLimitedError(AppError):
    status_code = 429
    default_message = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요."


class ServiceUnavailableError(AppError):
    status_code = 503
    default_message = "서비스를 일시적으로 사용할 수 없습니다."


class QuotaExceededError(AppError):
    """구독/사용량 한도 위반. 구독이 없으면 402, 한도 초과는 403."""
    status_code = 403

    MESSAGES = {
        "NO_ACTIVE_SUBSCRIPTION": "활성화된 구독이 없습니다. 플랜을 구독해주세요.",
        "QUOTA_EXCEEDED": "글자 수 한도를 초과했습니다.",
        "AUDIO_QUOTA_EXCEEDED": "음성 시간 한도를 초과했습니다.",
        "MAX_DREAMS_REACHED": "플랜의 최대 꿈 등록 수에 도달했습니다.",
    }

    def __init__(self, code: str, message: Optional[str] = None):
        status_code = 402 if code == "NO_ACTIVE_SUBSCRIPTION" else 403
        super().__init__(message or self.MESSAGES.get(code), code=code, status_code=status_code)


def _error_response(status_code: int, message: str, code: Optional[str] = None, headers=None) -> JSONResponse:
    body = {"error": message}
    if code:
        body["code"] = code
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """전역 예외 핸들러 등록"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        # 권한/한도 거절은 정상 흐름이므로 오류 로그를 남기지 않는다
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        if isinstance(detail, dict):
            return _error_response(
                exc.status_code,
                str(detail.get("error") or detail.get("message") or ""),
                detail.get("code"),
                headers=getattr(exc, "headers", None),
            )
        return _error_response(exc.status_code, str(detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "요청 값이 올바르지 않습니다."
        if errors:
            first = errors[0]
            loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
        return _error_response(400, message, "VALIDATION_ERROR")

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"무결성 제약 위반: {request.method} {request.url.path}")
        return _error_response(409, "이미 존재하는 항목입니다.", "CONFLICT")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"처리되지 않은 예외: {request.method} {request.url.path}")
        body = {"error": "Internal server error"}
        if not settings.is_production:
            body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=body)

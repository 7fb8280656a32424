"""
간단한 Redis 기반 레이트 리밋 유틸리티
"""

from __future__ import annotations

import logging
import time

from app.core.config import settings
from app.core.database import redis_client
from app.core.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


async def check_rate_limit(bucket: str, max_requests: int, window_seconds: int = 60) -> tuple[bool, int]:
    """
    고정 윈도우 방식 레이트리밋.
    반환: (허용 여부, 남은 횟수)
    """
    now = int(time.time())
    window = now // window_seconds
    key = f"rl:{bucket}:{window}"
    # INCR 및 만료 설정
    try:
        count = await redis_client.incr(key)
        if count == 1:
            await redis_client.expire(key, window_seconds)
        remaining = max(0, max_requests - count)
        return (count <= max_requests, remaining)
    except Exception as e:
        # Redis 장애 시 리밋을 우회(가용성 우선)
        logger.warning(f"레이트리밋 확인 실패(우회): {e}")
        return (True, max_requests)


async def enforce_rate_limit(bucket: str, max_requests: int, window_seconds: int = 60) -> None:
    """한도 초과 시 429. RATE_LIMIT_ENABLED=false면 검사하지 않는다."""
    if not settings.RATE_LIMIT_ENABLED:
        return
    allowed, _ = await check_rate_limit(bucket, max_requests, window_seconds)
    if not allowed:
        raise RateLimitedError(code="RATE_LIMITED")

"""
역할/참여자 기반 권한 검사

거절은 항상 요청 전체 단위(403)로 처리한다. 허용되지 않은 필드를 조용히 버리지 않는다.
"""

from typing import Iterable

from fastapi import Depends

from app.core.exceptions import ForbiddenError
from app.core.security import AuthContext, get_current_user


# 역할별 꿈 수정 가능 필드 (super_admin은 전체)
DREAM_FIELDS_BY_ROLE = {
    "admin": {"interpreter_id"},
    "owner": {"status", "notes"},
    "interpreter": {"interpretation", "status", "notes"},
}


def require_roles(*roles: str):
    """지정된 역할만 통과시키는 의존성 팩토리"""
    allowed = set(roles)

    async def _checker(current_user: AuthContext = Depends(get_current_user)) -> AuthContext:
        if current_user.role not in allowed:
            raise ForbiddenError("이 작업을 수행할 권한이 없습니다.")
        return current_user

    return _checker


def _same(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def ensure_can_view_dream(ctx: AuthContext, dream) -> None:
    """꿈 열람: 작성자, 배정된 해몽가, 관리자"""
    if ctx.is_admin:
        return
    if _same(dream.dreamer_id, ctx.user_id) or _same(dream.interpreter_id, ctx.user_id):
        return
    raise ForbiddenError("이 꿈에 접근할 권한이 없습니다.")


def dream_fields_allowed(ctx: AuthContext, dream) -> set:
    if ctx.is_super_admin:
        return {"interpreter_id", "interpretation", "status", "notes"}
    allowed = set()
    if ctx.role == "admin":
        allowed |= DREAM_FIELDS_BY_ROLE["admin"]
    if _same(dream.dreamer_id, ctx.user_id):
        allowed |= DREAM_FIELDS_BY_ROLE["owner"]
    if ctx.role == "interpreter" and _same(dream.interpreter_id, ctx.user_id):
        allowed |= DREAM_FIELDS_BY_ROLE["interpreter"]
    return allowed


def authorize_dream_update(ctx: AuthContext, dream, fields: Iterable[str]) -> None:
    """요청된 필드 중 하나라도 수정 권한이 없으면 전체 거절"""
    requested = set(fields)
    denied = requested - dream_fields_allowed(ctx, dream)
    if denied:
        if "interpreter_id" in denied:
            raise ForbiddenError("해몽가 배정은 관리자만 할 수 있습니다.")
        raise ForbiddenError(f"다음 항목을 수정할 권한이 없습니다: {', '.join(sorted(denied))}")


def ensure_dream_owner(ctx: AuthContext, dream) -> None:
    """삭제, 음성 첨부, 해몽 요청 생성: 작성자 또는 super_admin"""
    if ctx.is_super_admin or _same(dream.dreamer_id, ctx.user_id):
        return
    raise ForbiddenError("꿈 작성자만 할 수 있는 작업입니다.")


def ensure_can_view_request(ctx: AuthContext, req) -> None:
    """요청 열람: 꿈 작성자, 배정된 해몽가, 관리자. 미배정 요청은 해몽가도 열람 가능."""
    if ctx.is_admin:
        return
    if _same(req.dreamer_id, ctx.user_id) or _same(req.interpreter_id, ctx.user_id):
        return
    if ctx.role == "interpreter" and req.interpreter_id is None:
        return
    raise ForbiddenError("이 요청에 접근할 권한이 없습니다.")


def authorize_request_update(ctx: AuthContext, req, fields: Iterable[str]) -> None:
    requested = set(fields)
    if "interpreter_id" in requested and not ctx.is_admin:
        raise ForbiddenError("해몽가 배정은 관리자만 할 수 있습니다.")
    if "status" in requested and not (
        ctx.is_super_admin
        or _same(req.dreamer_id, ctx.user_id)
        or _same(req.interpreter_id, ctx.user_id)
    ):
        raise ForbiddenError("요청 상태를 변경할 권한이 없습니다.")


def ensure_interpreter_assigned(ctx: AuthContext, interpreter_id) -> None:
    """메시지/채팅 전제조건: super_admin 외에는 배정된 해몽가가 있어야 한다"""
    if ctx.is_super_admin:
        return
    if interpreter_id is None:
        raise ForbiddenError("아직 배정된 해몽가가 없습니다.", code="NO_INTERPRETER_ASSIGNED")

"""요청 컨텍스트 관리 (요청 ID, 프리페치 여부)"""

import contextvars
import uuid
from typing import Any, Optional

request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
# 클라이언트 프리페처가 보낸 요청인지 (X-Prefetch 헤더)
prefetch_ctx: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "is_prefetch", default=False
)


def get_request_id() -> Optional[str]:
    """현재 요청 ID 반환"""
    return request_id_ctx.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """요청 ID 설정 (없으면 새로 생성)"""
    if request_id is None:
        request_id = generate_request_id()
    request_id_ctx.set(request_id)
    return request_id


def generate_request_id() -> str:
    """새 요청 ID 생성"""
    return str(uuid.uuid4())


def is_prefetch_request() -> bool:
    return prefetch_ctx.get()


def set_prefetch_request(value: bool) -> None:
    prefetch_ctx.set(value)


def get_log_context(**extra: Any) -> dict[str, Any]:
    """로그 extra 필드 생성 (요청 ID 포함)"""
    return {
        "request_id": get_request_id(),
        "prefetch": is_prefetch_request(),
        **extra,
    }

"""요청/응답 로깅 미들웨어"""

from typing import Callable, cast

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger
from app.core.middlewares.context import set_prefetch_request, set_request_id
from app.core.utils.time import measure_time

logger = get_logger(__name__)

# 로깅 제외 경로
EXCLUDE_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 및 처리 시간 측정 미들웨어

    프리페치 요청(X-Prefetch: true)은 양이 많으므로 DEBUG 레벨로만 남깁니다.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        if request.url.path in EXCLUDE_PATHS:
            return cast(Response, await call_next(request))

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        is_prefetch = request.headers.get("X-Prefetch", "").lower() == "true"
        set_prefetch_request(is_prefetch)
        log_info = logger.debug if is_prefetch else logger.info

        log_info(
            f"[{request_id}] → {request.method} {request.url.path} "
            f"| Client: {request.client.host if request.client else 'unknown'}"
            f"{' | prefetch' if is_prefetch else ''}"
        )

        with measure_time() as timer:
            try:
                response = await call_next(request)
            except Exception as e:
                timer.stop()
                logger.error(
                    f"[{request_id}] ✗ {request.method} {request.url.path} "
                    f"| Error: {str(e)} | Time: {timer.elapsed_ms:.2f}ms"
                )
                raise

        process_time = timer.elapsed_ms

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

        status_emoji = "✓" if response.status_code < 400 else "✗"
        log_method = log_info if response.status_code < 400 else logger.warning

        log_method(
            f"[{request_id}] {status_emoji} {request.method} "
            f"{request.url.path} | Status: {response.status_code} "
            f"| Time: {process_time:.2f}ms"
        )

        return cast(Response, response)

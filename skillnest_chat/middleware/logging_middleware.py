"""
HTTP 요청 로깅 미들웨어

요청마다 request_id를 발급해 로그 컨텍스트와 X-Request-ID 응답 헤더에 싣습니다.
WebSocket 연결은 게이트웨이가 connection_id로 따로 로깅합니다.
"""

import time
import uuid
from typing import Callable, Dict
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from skillnest_chat.core.logging import clear_request_context, get_logger, log_api_call, set_request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# 세션 토큰이 실리는 헤더
REDACTED_HEADERS = {"authorization", "cookie"}


def client_ip(request: Request) -> str:
    """프록시 헤더를 고려한 클라이언트 IP"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or (request.client.host if request.client else "unknown")


def redacted_headers(request: Request) -> Dict[str, str]:
    return {
        name: "***" if name.lower() in REDACTED_HEADERS else value
        for name, value in request.headers.items()
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, slow_request_threshold_ms: float = 1000):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_context(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed after {self._elapsed_ms(started):.1f}ms",
                extra={"event_type": "api_error", "error_type": type(e).__name__, "client_ip": client_ip(request)},
                exc_info=True
            )
            clear_request_context()
            raise

        duration_ms = self._elapsed_ms(started)
        log_api_call(
            logger,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            query=str(request.query_params) or None,
            headers=redacted_headers(request),
            client_ip=client_ip(request),
        )
        if duration_ms > self.slow_request_threshold_ms:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms:.1f}ms",
                extra={"event_type": "slow_request", "threshold_ms": self.slow_request_threshold_ms}
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        clear_request_context()
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

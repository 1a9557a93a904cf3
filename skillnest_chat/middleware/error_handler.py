"""
HTTP 에러 처리

라우트에서 처리되지 않은 예외를 표준 에러 응답으로 변환합니다.
WebSocket 스코프는 BaseHTTPMiddleware를 통과하지 않으므로 게이트웨이가 직접 처리합니다.
"""

import traceback
from typing import Callable, Optional, Tuple, Type
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import ConnectionFailure, OperationFailure, ServerSelectionTimeoutError
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from skillnest_chat.core.config import settings
from skillnest_chat.core.errors import (
    BaseCustomException,
    FieldError,
    ValidationErrorResponse,
    create_error_response,
)
from skillnest_chat.core.logging import get_logger

logger = get_logger(__name__)

# 예외 타입 → (에러 코드, 메시지, 상태 코드). 위에서부터 처음 일치하는 항목을 사용
INFRASTRUCTURE_ERRORS: Tuple[Tuple[Tuple[Type[BaseException], ...], str, str, int], ...] = (
    ((ConnectionFailure, ServerSelectionTimeoutError), "mongodb_connection_error",
     "Message store unavailable", status.HTTP_503_SERVICE_UNAVAILABLE),
    ((OperationFailure,), "mongodb_operation_error",
     "Message store operation failed", status.HTTP_400_BAD_REQUEST),
    ((RedisError,), "session_store_error",
     "Session store unavailable", status.HTTP_503_SERVICE_UNAVAILABLE),
    ((TimeoutError,), "timeout_error",
     "Request timeout", status.HTTP_408_REQUEST_TIMEOUT),
)


def _json(error: str, message: str, status_code: int, details: Optional[dict] = None) -> JSONResponse:
    body = create_error_response(error, message, status_code, details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _debug_details(exc: BaseException, with_traceback: bool = False) -> Optional[dict]:
    if not settings.debug:
        return None
    details = {"type": type(exc).__name__, "exception": str(exc)}
    if with_traceback:
        details["traceback"] = traceback.format_exc()
    return details


def _validation_response(exc: PydanticValidationError) -> JSONResponse:
    body = ValidationErrorResponse(
        message="Request validation failed",
        validation_errors=[
            FieldError(
                field=".".join(str(part) for part in error["loc"]),
                message=error["msg"],
                value=error.get("input"),
            )
            for error in exc.errors()
        ],
    )
    return JSONResponse(status_code=body.status_code, content=body.model_dump(mode="json"))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """HTTP 요청 처리 중 발생한 예외를 표준 에러 응답으로 변환"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except BaseCustomException as e:
            return JSONResponse(status_code=e.status_code, content=e.to_dict())
        except PydanticValidationError as e:
            return _validation_response(e)
        except Exception as e:
            return self._handle_unexpected(request, e)

    def _handle_unexpected(self, request: Request, exc: Exception) -> JSONResponse:
        for types, error, message, status_code in INFRASTRUCTURE_ERRORS:
            if isinstance(exc, types):
                logger.error(f"{error} on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
                return _json(error, message, status_code, _debug_details(exc))

        # 잘못된 ObjectId 등
        if isinstance(exc, ValueError):
            return _json("value_error", str(exc), status.HTTP_400_BAD_REQUEST)

        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return _json(
            "internal_server_error",
            "An unexpected error occurred",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            _debug_details(exc, with_traceback=True),
        )


def create_http_exception_handler():
    """HTTPException을 표준 에러 응답으로 변환하는 핸들러"""

    async def http_exception_handler(request: Request, exc):
        if isinstance(exc, BaseCustomException):
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        if isinstance(exc.detail, str):
            return _json("http_error", exc.detail, exc.status_code)
        return _json("http_error", "HTTP error occurred", exc.status_code, {"detail": exc.detail})

    return http_exception_handler

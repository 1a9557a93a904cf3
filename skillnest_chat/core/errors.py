"""
HTTP 에러 응답 형식과 예외

모든 HTTP 에러는 {error, message, details, status_code} 형태로 응답합니다.
WebSocket 이벤트 처리 중 발생한 예외는 클라이언트에 전달하지 않고 로그로만 남깁니다.
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


class FieldError(BaseModel):
    """요청 검증 실패 항목"""
    field: str
    message: str
    value: Optional[Any] = None


class ValidationErrorResponse(BaseModel):
    error: str = "validation_error"
    message: str
    validation_errors: List[FieldError]
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# 예외
# =============================================================================

class BaseCustomException(HTTPException):
    """에러 코드와 메시지를 응답 본문으로 그대로 내보내는 HTTP 예외"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)

    def to_dict(self) -> Dict[str, Any]:
        return ErrorResponse(
            error=self.error,
            message=self.message,
            details=self.details,
            status_code=self.status_code,
        ).model_dump()


class AuthenticationException(BaseCustomException):
    """세션 없음/만료 (401)"""

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "authentication_error", message, details)


class AuthorizationException(BaseCustomException):
    """대화방 참여자가 아님 (403)"""

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_403_FORBIDDEN, "authorization_error", message, details)


class ResourceNotFoundException(BaseCustomException):
    def __init__(self, resource: str = "Resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            "resource_not_found",
            f"{resource} not found",
            details or {"resource": resource},
        )


class InvalidIdentifierError(ValueError):
    """ObjectId 형식이 아닌 식별자"""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")


# =============================================================================
# 팩토리
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    return ErrorResponse(error=error, message=message, status_code=status_code, details=details)


def invalid_session_error() -> AuthenticationException:
    return AuthenticationException("Invalid or expired session")


def conversation_access_denied_error(job_id: str) -> AuthorizationException:
    return AuthorizationException("Access denied to this conversation", details={"job_id": job_id})


def job_not_found_error(job_id: str) -> ResourceNotFoundException:
    return ResourceNotFoundException("Job", details={"job_id": job_id})

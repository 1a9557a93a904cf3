"""
구조화된 로깅

모든 로그는 JSON 한 줄로 기록됩니다. HTTP 요청은 request_id, WebSocket 연결은
connection_id가 컨텍스트 변수로 붙어 같은 연결의 이벤트를 한 번에 추적할 수 있습니다.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from skillnest_chat.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
connection_id_var: ContextVar[Optional[str]] = ContextVar("connection_id", default=None)

_CONTEXT_VARS = (request_id_var, user_id_var, connection_id_var)

# LogRecord 기본 속성 (extra로 취급하지 않음)
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "taskName"}

# 외부 라이브러리 로그 레벨
_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "motor", "pymongo", "beanie", "redis")


class StructuredFormatter(logging.Formatter):
    """LogRecord를 JSON 문자열로 변환"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for var in _CONTEXT_VARS:
            value = var.get()
            if value:
                entry[var.name] = value

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logging():
    """
    루트 로거 구성

    - 콘솔: debug 모드에서는 읽기 쉬운 텍스트, 그 외에는 JSON
    - {log_dir}/app.log: INFO 이상 JSON
    - {log_dir}/error.log: ERROR 이상 JSON
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        if settings.debug else StructuredFormatter()
    )
    root.addHandler(console)
    root.addHandler(_file_handler(log_dir / "app.log", logging.INFO))
    root.addHandler(_file_handler(log_dir / "error.log", logging.ERROR))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# =============================================================================
# 컨텍스트
# =============================================================================

def set_request_context(request_id: str, user_id: Optional[str] = None):
    request_id_var.set(request_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context():
    for var in _CONTEXT_VARS:
        var.set(None)


def set_connection_context(connection_id: str, user_id: str):
    """WebSocket 연결 컨텍스트 (연결을 처리하는 태스크가 끝날 때까지 유지)"""
    connection_id_var.set(connection_id)
    user_id_var.set(user_id)


# =============================================================================
# 이벤트 로그 헬퍼
# =============================================================================

def _log_event(logger: logging.Logger, level: int, message: str, event_type: str, **fields):
    # stacklevel: location은 헬퍼가 아닌 호출 지점
    logger.log(level, message, extra={"event_type": event_type, **fields}, stacklevel=3)


def log_api_call(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_id: Optional[str] = None,
    **extra
):
    level = logging.WARNING if status_code >= 500 else logging.INFO
    _log_event(
        logger, level, f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)", "api_call",
        method=method, path=path, status_code=status_code,
        duration_ms=round(duration_ms, 2), user_id=user_id, **extra
    )


def log_database_operation(
    logger: logging.Logger,
    operation: str,
    collection: str,
    affected_rows: Optional[int] = None,
    **extra
):
    _log_event(
        logger, logging.INFO, f"{collection}.{operation} affected={affected_rows}", "database_operation",
        operation=operation, collection=collection, affected_rows=affected_rows, **extra
    )


def log_websocket_event(
    logger: logging.Logger,
    event: str,
    user_id: str,
    room_id: Optional[str] = None,
    **extra
):
    """연결/입장/메시지 등 WebSocket 이벤트"""
    where = f" in conversation {room_id}" if room_id else ""
    _log_event(
        logger, logging.INFO, f"ws {event}: user {user_id}{where}", "websocket",
        event=event, user_id=user_id, room_id=room_id, **extra
    )


def log_security_event(
    logger: logging.Logger,
    event: str,
    severity: str = "medium",
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    **extra
):
    """인증 실패, 대화방 접근 거부 등"""
    _log_event(
        logger, logging.WARNING, f"security {event} (severity={severity})", "security",
        event=event, severity=severity, user_id=user_id, ip_address=ip_address, **extra
    )

from typing import Optional
from fastapi import WebSocket, status
from starlette.requests import HTTPConnection

from skillnest_chat.core.config import settings
from skillnest_chat.core.logging import get_logger, log_security_event
from skillnest_chat.services.session_service import SessionStore

logger = get_logger(__name__)


def extract_session_token(connection: HTTPConnection) -> Optional[str]:
    """
    요청에서 세션 토큰을 추출합니다.

    우선순위: 세션 쿠키 → Authorization: Bearer 헤더 → token 쿼리 파라미터
    """
    token = connection.cookies.get(settings.session_cookie_name)
    if token:
        return token

    authorization = connection.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None

    return connection.query_params.get("token") or None


def _client_ip(connection: HTTPConnection) -> Optional[str]:
    return connection.client.host if connection.client else None


async def authenticate_websocket(websocket: WebSocket, sessions: SessionStore) -> Optional[str]:
    """
    WebSocket 연결의 세션을 검증하고 사용자 ID를 반환합니다.

    인증에 실패하면 accept 전에 연결을 종료합니다 (재시도/유예 없음).

    Returns:
        str: 인증된 사용자 ID, 인증 실패 시 None
    """
    token = extract_session_token(websocket)
    if not token:
        log_security_event(logger, "websocket_no_session", severity="low", ip_address=_client_ip(websocket))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    try:
        user_id = await sessions.resolve_user_id(token)
    except Exception as e:
        logger.error(f"WebSocket session lookup error: {e}", exc_info=True)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return None

    if not user_id:
        log_security_event(logger, "websocket_invalid_session", ip_address=_client_ip(websocket))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    logger.info(f"WebSocket authentication successful for user: {user_id}")
    return user_id

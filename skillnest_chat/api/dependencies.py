"""
API 공통 의존성

게이트웨이와 그 구성요소는 app.state.gateway에서 가져옵니다 (테스트에서 dependency_overrides로 교체).
"""

from fastapi import Depends
from starlette.requests import HTTPConnection

from skillnest_chat.core.errors import invalid_session_error
from skillnest_chat.services.conversation_service import ConversationDirectory
from skillnest_chat.services.message_service import MessageStore
from skillnest_chat.services.presence_service import PresenceTracker
from skillnest_chat.services.session_service import SessionStore
from skillnest_chat.websockets.auth import extract_session_token
from skillnest_chat.websockets.gateway import ConnectionGateway


def get_gateway(connection: HTTPConnection) -> ConnectionGateway:
    return connection.app.state.gateway


def get_session_store(gateway: ConnectionGateway = Depends(get_gateway)) -> SessionStore:
    return gateway.sessions


def get_presence_tracker(gateway: ConnectionGateway = Depends(get_gateway)) -> PresenceTracker:
    return gateway.presence


def get_message_store(gateway: ConnectionGateway = Depends(get_gateway)) -> MessageStore:
    return gateway.handler.message_store


def get_conversation_directory(gateway: ConnectionGateway = Depends(get_gateway)) -> ConversationDirectory:
    return gateway.handler.directory


async def get_current_user_id(
    connection: HTTPConnection,
    sessions: SessionStore = Depends(get_session_store),
) -> str:
    """세션 쿠키/Bearer 토큰으로 현재 사용자 ID를 조회합니다 (없으면 401)."""
    user_id = await sessions.resolve_user_id(extract_session_token(connection))
    if not user_id:
        raise invalid_session_error()
    return user_id

"""
WebSocket 연결 게이트웨이

세션 인증 → 연결 등록 → 접속 상태 증가 → 수신 루프 → 연결 해제 정리를 담당합니다.
한 연결의 이벤트는 수신 순서대로 하나씩 처리됩니다.
"""

from typing import Optional, Union

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from skillnest_chat.core.config import Settings, settings as default_settings
from skillnest_chat.core.logging import get_logger, log_websocket_event, set_connection_context
from skillnest_chat.schemas.events import parse_client_event
from skillnest_chat.services.conversation_service import ConversationDirectory
from skillnest_chat.services.message_service import MessageStore
from skillnest_chat.services.presence_service import PresenceTracker
from skillnest_chat.services.session_service import SessionStore, create_session_store
from skillnest_chat.websockets.auth import authenticate_websocket
from skillnest_chat.websockets.connection_manager import Connection, ConnectionManager
from skillnest_chat.websockets.handlers import ChatEventHandler

logger = get_logger(__name__)


class ConnectionGateway:
    def __init__(
        self,
        manager: ConnectionManager,
        presence: PresenceTracker,
        handler: ChatEventHandler,
        sessions: SessionStore,
    ):
        self.manager = manager
        self.presence = presence
        self.handler = handler
        self.sessions = sessions

    async def handle(self, websocket: WebSocket):
        """WebSocket 연결 하나의 전체 수명을 처리합니다."""
        user_id = await authenticate_websocket(websocket, self.sessions)
        if not user_id:
            return

        await websocket.accept()
        connection = self.manager.register(websocket, user_id)
        set_connection_context(connection.connection_id, user_id)
        log_websocket_event(logger, "connected", user_id, connection_id=connection.connection_id)

        try:
            await self.presence.connect(user_id)
            await self._receive_loop(connection)
        except WebSocketDisconnect as e:
            log_websocket_event(
                logger, "disconnected", user_id, connection.active_conversation_id, code=e.code
            )
        except Exception as e:
            logger.error(f"Unexpected error in WebSocket connection for user {user_id}: {e}", exc_info=True)
        finally:
            self.manager.unregister(connection)
            await self.presence.disconnect(user_id)

    async def _receive_loop(self, connection: Connection):
        while True:
            raw = await self._receive_frame(connection.websocket)
            if raw is None:
                continue

            try:
                event = parse_client_event(raw)
            except ValidationError as e:
                logger.warning(
                    f"Malformed event from user {connection.user_id} ignored: {e.error_count()} error(s)",
                    extra={"errors": e.errors(include_url=False, include_input=False)}
                )
                continue

            await self.handler.dispatch(connection, event)

    async def _receive_frame(self, websocket: WebSocket) -> Optional[Union[str, bytes]]:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(code=message.get("code", 1000))
        return message.get("text") or message.get("bytes")


def build_gateway(config: Optional[Settings] = None) -> ConnectionGateway:
    """기본 구성요소로 게이트웨이를 조립합니다."""
    config = config or default_settings
    manager = ConnectionManager()
    presence = PresenceTracker(manager)
    message_store = MessageStore()
    directory = ConversationDirectory(message_store)
    handler = ChatEventHandler(
        manager,
        presence,
        message_store,
        directory,
        recent_messages_limit=config.recent_messages_limit,
        unread_update_scope=config.unread_update_scope,
    )
    sessions = create_session_store(config)
    return ConnectionGateway(manager, presence, handler, sessions)

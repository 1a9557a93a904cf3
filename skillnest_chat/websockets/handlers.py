from typing import List, Optional

from skillnest_chat.core.logging import get_logger, log_security_event, log_websocket_event
from skillnest_chat.models.messages import Attachment
from skillnest_chat.schemas.events import (
    ChatMessageEvent,
    InboundEvent,
    JoinRoomEvent,
    MarkReadEvent,
    PresenceEvent,
    TypingEvent,
    chat_message_event,
    message_payload,
    message_read_event,
    recent_messages_event,
    typing_event,
    unread_update_event,
)
from skillnest_chat.services.conversation_service import ConversationDirectory
from skillnest_chat.services.message_service import MessageStore
from skillnest_chat.services.presence_service import PresenceTracker
from skillnest_chat.websockets.connection_manager import Connection, ConnectionManager

logger = get_logger(__name__)


class ChatEventHandler:
    """
    WebSocket 채팅 이벤트 처리 핸들러

    모든 이벤트는 fire-and-forget입니다. 처리 중 오류는 로그만 남기고 해당 이벤트를 버리며,
    요청한 연결에 에러 이벤트를 보내거나 재시도하지 않습니다 (at-most-once).
    """

    def __init__(
        self,
        manager: ConnectionManager,
        presence: PresenceTracker,
        message_store: MessageStore,
        directory: ConversationDirectory,
        recent_messages_limit: int = 50,
        unread_update_scope: str = "recipient",
    ):
        self.manager = manager
        self.presence = presence
        self.message_store = message_store
        self.directory = directory
        self.recent_messages_limit = recent_messages_limit
        self.unread_update_scope = unread_update_scope

    async def dispatch(self, connection: Connection, event: InboundEvent):
        """검증된 수신 이벤트를 처리합니다."""
        try:
            if isinstance(event, JoinRoomEvent):
                await self.join_room(connection, event.conversation_id)
            elif isinstance(event, ChatMessageEvent):
                await self.send_message(connection, event.conversation_id, event.body, event.attachments)
            elif isinstance(event, MarkReadEvent):
                await self.mark_read(connection, event.conversation_id)
            elif isinstance(event, TypingEvent):
                await self.typing(connection, event.conversation_id, event.is_typing)
            elif isinstance(event, PresenceEvent):
                await self.presence.ping(connection.user_id)
            else:
                logger.warning(f"Unhandled event {type(event).__name__} from user {connection.user_id}")
        except Exception as e:
            logger.error(
                f"Error handling {getattr(event, 'type', '?')} from user {connection.user_id}: {e}",
                exc_info=True
            )

    def _conversation_for(self, connection: Connection, conversation_id: Optional[str]) -> Optional[str]:
        return conversation_id or connection.active_conversation_id

    async def _may_act_in(self, connection: Connection, conversation_id: str, denied_event: str) -> bool:
        # 입장한 대화방은 join 시점에 이미 검증됨
        if conversation_id == connection.active_conversation_id:
            return True
        if await self.directory.is_participant(conversation_id, connection.user_id):
            return True
        log_security_event(logger, denied_event, user_id=connection.user_id, room_id=conversation_id)
        return False

    async def join_room(self, connection: Connection, conversation_id: Optional[str]):
        """대화방에 입장하고 최근 메시지를 요청한 연결에만 전송합니다."""
        conversation_id = self._conversation_for(connection, conversation_id)
        if not conversation_id:
            logger.warning(f"joinRoom without conversation from user {connection.user_id}")
            return

        if not await self.directory.is_participant(conversation_id, connection.user_id):
            log_security_event(
                logger, "room_join_denied", user_id=connection.user_id, room_id=conversation_id
            )
            return

        self.manager.join_room(connection, conversation_id)
        log_websocket_event(logger, "join_room", connection.user_id, conversation_id)

        messages = await self.message_store.recent_messages(conversation_id, self.recent_messages_limit)
        names = await self.message_store.usernames({message.sender_id for message in messages})
        items = [message_payload(message, names.get(str(message.sender_id))) for message in messages]

        await self.manager.send_to_connection(connection, recent_messages_event(conversation_id, items))

    async def send_message(
        self,
        connection: Connection,
        conversation_id: Optional[str],
        body: str,
        attachments: Optional[List[Attachment]] = None,
    ):
        """메시지를 저장한 뒤 대화방에 브로드캐스트하고 수신자에게 미읽음 알림을 보냅니다."""
        conversation_id = self._conversation_for(connection, conversation_id)
        if not conversation_id:
            logger.warning(f"chatMessage without conversation from user {connection.user_id}")
            return

        if not await self._may_act_in(connection, conversation_id, "message_send_denied"):
            return

        receiver_id = await self.directory.resolve_receiver(conversation_id, connection.user_id)
        if not receiver_id:
            receiver_id = connection.user_id

        message = await self.message_store.create_message(
            conversation_id, connection.user_id, receiver_id, body, attachments
        )

        names = await self.message_store.usernames([connection.user_id])
        payload = message_payload(message, names.get(connection.user_id))
        delivered = await self.manager.broadcast_to_room(conversation_id, chat_message_event(payload))
        log_websocket_event(
            logger, "chat_message", connection.user_id, conversation_id,
            message_id=str(message.id), delivered=delivered
        )

        unread = unread_update_event(message)
        if self.unread_update_scope == "all":
            await self.manager.broadcast(unread)
        else:
            await self.manager.send_to_user(str(message.receiver_id), unread)

    async def mark_read(self, connection: Connection, conversation_id: Optional[str]):
        """사용자에게 온 메시지를 읽음 처리하고 대화방에 알립니다."""
        conversation_id = self._conversation_for(connection, conversation_id)
        if not conversation_id:
            logger.warning(f"markRead without conversation from user {connection.user_id}")
            return

        if not await self._may_act_in(connection, conversation_id, "mark_read_denied"):
            return

        await self.message_store.mark_read(conversation_id, connection.user_id)
        await self.manager.broadcast_to_room(
            conversation_id, message_read_event(conversation_id, connection.user_id)
        )

    async def typing(self, connection: Connection, conversation_id: Optional[str], is_typing: bool):
        """타이핑 상태를 같은 대화방의 다른 연결에 전달합니다."""
        conversation_id = self._conversation_for(connection, conversation_id)
        if not conversation_id or conversation_id != connection.active_conversation_id:
            return

        await self.manager.broadcast_to_room(
            conversation_id,
            typing_event(conversation_id, connection.user_id, is_typing),
            exclude=connection
        )

"""
WebSocket 이벤트 스키마

수신 이벤트는 `type` 필드로 구분되는 태그 유니온이며, 디스패치 전에 검증됩니다.
송신 이벤트는 `type` 필드를 포함한 평면 JSON 딕셔너리로 구성됩니다.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from skillnest_chat.models.messages import Attachment, Message
from skillnest_chat.utils.time_utils import isoformat_utc


# =============================================================================
# 수신 이벤트
# =============================================================================

class InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    # 생략 시 연결의 현재 대화방을 사용
    conversation_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("conversationId", "jobId")
    )

    @field_validator("conversation_id")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class JoinRoomEvent(InboundEvent):
    type: Literal["joinRoom"]


class ChatMessageEvent(InboundEvent):
    type: Literal["chatMessage"]
    body: str = Field(..., validation_alias=AliasChoices("body", "message"))
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator("body")
    @classmethod
    def _body_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message body must not be empty")
        return value


class MarkReadEvent(InboundEvent):
    type: Literal["markRead"]


class TypingEvent(InboundEvent):
    type: Literal["typing"]
    is_typing: bool = Field(True, validation_alias=AliasChoices("isTyping", "is_typing"))


class PresenceEvent(InboundEvent):
    type: Literal["presence"]


ClientEvent = Annotated[
    Union[JoinRoomEvent, ChatMessageEvent, MarkReadEvent, TypingEvent, PresenceEvent],
    Field(discriminator="type"),
]

_client_event_adapter = TypeAdapter(ClientEvent)


def parse_client_event(raw: Union[str, bytes]) -> InboundEvent:
    """
    WebSocket 텍스트 프레임을 수신 이벤트로 변환합니다.

    Raises:
        pydantic.ValidationError: JSON이 아니거나, 알 수 없는 type이거나, 필수 필드가 없는 경우
    """
    return _client_event_adapter.validate_json(raw)


# =============================================================================
# 송신 이벤트
# =============================================================================

RECENT_MESSAGES = "recentMessages"
CHAT_MESSAGE = "chatMessage"
UNREAD_UPDATE = "unreadUpdate"
MESSAGE_READ = "messageRead"
PRESENCE_UPDATE = "presenceUpdate"
TYPING = "typing"
NOTIFICATION = "notification"


def message_payload(message: Message, sender_name: Optional[str] = None) -> Dict[str, Any]:
    """저장된 메시지를 클라이언트 전송용 딕셔너리로 변환"""
    return {
        "messageId": str(message.id),
        "conversationId": str(message.job_id),
        "message": message.body,
        "sender": sender_name or str(message.sender_id),
        "senderId": str(message.sender_id),
        "attachments": [attachment.model_dump() for attachment in message.attachments],
        "createdAt": isoformat_utc(message.created_at),
    }


def recent_messages_event(conversation_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": RECENT_MESSAGES, "conversationId": conversation_id, "messages": items}


def chat_message_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": CHAT_MESSAGE, **payload}


def unread_update_event(message: Message) -> Dict[str, Any]:
    return {
        "type": UNREAD_UPDATE,
        "conversationId": str(message.job_id),
        "receiver": str(message.receiver_id),
        "messageId": str(message.id),
        "createdAt": isoformat_utc(message.created_at),
    }


def message_read_event(conversation_id: str, user_id: str) -> Dict[str, Any]:
    return {"type": MESSAGE_READ, "conversationId": conversation_id, "userId": user_id}


def presence_update_event(user_id: str, online: bool) -> Dict[str, Any]:
    return {"type": PRESENCE_UPDATE, "userId": user_id, "online": online}


def typing_event(conversation_id: str, user_id: str, is_typing: bool) -> Dict[str, Any]:
    return {"type": TYPING, "conversationId": conversation_id, "userId": user_id, "isTyping": is_typing}


def notification_event(kind: str, **fields: Any) -> Dict[str, Any]:
    return {"type": NOTIFICATION, "kind": kind, **fields}

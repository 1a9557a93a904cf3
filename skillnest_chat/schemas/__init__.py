from .message import MessageResponse, MessageHistory, ConversationSummary, PresenceStatus, OnlineUsers
from .events import (
    InboundEvent,
    JoinRoomEvent,
    ChatMessageEvent,
    MarkReadEvent,
    TypingEvent,
    PresenceEvent,
    parse_client_event,
)

__all__ = [
    "MessageResponse",
    "MessageHistory",
    "ConversationSummary",
    "PresenceStatus",
    "OnlineUsers",
    "InboundEvent",
    "JoinRoomEvent",
    "ChatMessageEvent",
    "MarkReadEvent",
    "TypingEvent",
    "PresenceEvent",
    "parse_client_event",
]

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from skillnest_chat.models.messages import Attachment
from skillnest_chat.utils.time_utils import isoformat_utc


class MessageResponse(BaseModel):
    """메시지 응답 스키마"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="메시지 ID")
    job_id: str = Field(..., serialization_alias="jobId", description="대화방(Job) ID")
    sender_id: str = Field(..., serialization_alias="senderId", description="발신자 ID")
    sender: str = Field(..., description="발신자 이름")
    receiver_id: str = Field(..., serialization_alias="receiverId", description="수신자 ID")
    message: str = Field(..., description="메시지 내용")
    attachments: List[Attachment] = Field(default_factory=list, description="첨부 파일 목록")
    read: bool = Field(..., description="읽음 여부")
    created_at: datetime = Field(..., serialization_alias="createdAt", description="생성일시")

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return isoformat_utc(value)


class MessageHistory(BaseModel):
    """대화방 메시지 목록 스키마"""
    job_id: str = Field(..., serialization_alias="jobId")
    messages: List[MessageResponse] = Field(..., description="오래된 순 메시지 목록")
    count: int = Field(..., description="반환된 메시지 수")


class ConversationSummary(BaseModel):
    """대화 목록 항목 스키마"""
    user_id: str = Field(..., serialization_alias="userId", description="상대방 ID")
    username: str = Field(..., description="상대방 이름")
    last_message: str = Field(..., serialization_alias="lastMessage", description="마지막 메시지")
    job_id: str = Field(..., serialization_alias="jobId", description="대화방(Job) ID")
    created_at: datetime = Field(..., serialization_alias="createdAt", description="마지막 메시지 시각")
    unread: int = Field(..., ge=0, description="읽지 않은 메시지 수")

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return isoformat_utc(value)


class PresenceStatus(BaseModel):
    """사용자 접속 상태 스키마"""
    user_id: str = Field(..., serialization_alias="userId")
    online: bool
    connections: int = Field(..., ge=0, description="활성 WebSocket 연결 수")


class OnlineUsers(BaseModel):
    users: List[str] = Field(default_factory=list, description="접속 중인 사용자 ID 목록")
    count: int = Field(..., ge=0)

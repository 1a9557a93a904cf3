from datetime import datetime
from typing import List, Optional
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field
from pymongo import ASCENDING, DESCENDING

from skillnest_chat.utils.time_utils import utc_now


class Attachment(BaseModel):
    """첨부 파일 메타데이터 (파일 자체는 외부 저장소에 있음)"""
    filename: str = Field(..., description="Stored file name")
    path: str = Field(..., description="Public path of the file")
    size: Optional[int] = Field(None, description="File size in bytes")
    mimetype: Optional[str] = Field(None, description="MIME type")


class Message(Document):
    """
    채팅 메시지

    웹 애플리케이션과 같은 `messages` 컬렉션을 공유하므로 저장 필드명은
    jobId / sender / receiver / message / createdAt 입니다.
    """
    model_config = ConfigDict(populate_by_name=True)

    job_id: PydanticObjectId = Field(..., alias="jobId", description="Job (conversation) the message belongs to")
    sender_id: PydanticObjectId = Field(..., alias="sender", description="User ID who sent the message")
    receiver_id: PydanticObjectId = Field(..., alias="receiver", description="User ID the message is addressed to")
    body: str = Field(default="", alias="message", description="Message text")
    attachments: List[Attachment] = Field(default_factory=list)
    read: bool = Field(default=False, description="Whether the receiver has read the message")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")

    class Settings:
        name = "messages"
        indexes = [
            [("jobId", ASCENDING), ("createdAt", DESCENDING)],  # 대화방 최근 메시지
            [("jobId", ASCENDING), ("receiver", ASCENDING), ("read", ASCENDING)],  # 읽음 처리/미읽음 개수
            [("sender", ASCENDING), ("createdAt", DESCENDING)],
            [("receiver", ASCENDING), ("createdAt", DESCENDING)],
        ]

    def __repr__(self):
        return f"<Message(id={self.id}, job_id={self.job_id}, sender_id={self.sender_id}, read={self.read})>"

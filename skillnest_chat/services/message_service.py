"""
Message service layer for MongoDB operations.

Durable log of chat messages keyed by job (conversation). Every write goes through
Beanie; ids arriving from clients are converted here and rejected when malformed.
Raw filters use the stored field names (jobId, sender, receiver, createdAt).
"""

from typing import Any, Dict, Iterable, List, Optional
from beanie import PydanticObjectId
from bson import ObjectId
from pymongo import DESCENDING

from skillnest_chat.core.errors import InvalidIdentifierError
from skillnest_chat.core.logging import get_logger, log_database_operation
from skillnest_chat.models.messages import Attachment, Message
from skillnest_chat.models.users import User
from skillnest_chat.schemas.message import ConversationSummary
from skillnest_chat.utils.time_utils import utc_now

logger = get_logger(__name__)

NEWEST_FIRST = [("createdAt", DESCENDING)]


def to_object_id(value: Any, field: str = "id") -> PydanticObjectId:
    """문자열 ID를 ObjectId로 변환 (형식이 잘못되면 InvalidIdentifierError)"""
    if isinstance(value, ObjectId):
        return PydanticObjectId(value)
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifierError(field, value)
    return PydanticObjectId(value)


def _involving(uid: PydanticObjectId) -> Dict[str, Any]:
    return {"$or": [{"sender": uid}, {"receiver": uid}]}


def _unread_filter(job_id: str, receiver_id: str) -> Dict[str, Any]:
    return {
        "jobId": to_object_id(job_id, "job_id"),
        "receiver": to_object_id(receiver_id, "receiver_id"),
        "read": False,
    }


class MessageStore:
    """메시지 저장소"""

    # =========================================================================
    # 메시지 생성/조회
    # =========================================================================

    async def create_message(
        self,
        job_id: str,
        sender_id: str,
        receiver_id: str,
        body: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> Message:
        """메시지 저장 (읽지 않음 상태, 밀리초 단위 현재 UTC 시각)"""
        message = Message(
            job_id=to_object_id(job_id, "job_id"),
            sender_id=to_object_id(sender_id, "sender_id"),
            receiver_id=to_object_id(receiver_id, "receiver_id"),
            body=body,
            attachments=list(attachments or []),
            read=False,
            created_at=utc_now(),
        )
        await message.insert()
        return message

    async def recent_messages(self, job_id: str, limit: int = 50) -> List[Message]:
        """대화방의 최근 메시지를 오래된 순으로 반환"""
        messages = await Message.find(
            {"jobId": to_object_id(job_id, "job_id")}
        ).sort(NEWEST_FIRST).limit(limit).to_list()

        # 최신순으로 조회한 것을 역순으로 변경 (오래된 것부터)
        return list(reversed(messages))

    async def has_participated(self, job_id: str, user_id: str) -> bool:
        """사용자가 대화방에서 메시지를 보내거나 받은 적이 있는지 확인"""
        uid = to_object_id(user_id, "user_id")
        message = await Message.find_one({"jobId": to_object_id(job_id, "job_id"), **_involving(uid)})
        return message is not None

    async def last_counterpart(self, job_id: str, user_id: str) -> Optional[str]:
        """대화방에서 마지막으로 대화한 상대방 ID"""
        uid = to_object_id(user_id, "user_id")
        message = await Message.find({
            "jobId": to_object_id(job_id, "job_id"),
            "$or": [
                {"sender": uid, "receiver": {"$ne": uid}},
                {"receiver": uid, "sender": {"$ne": uid}},
            ],
        }).sort(NEWEST_FIRST).first_or_none()
        if message is None:
            return None
        other = message.receiver_id if message.sender_id == uid else message.sender_id
        return str(other)

    # =========================================================================
    # 읽음 상태
    # =========================================================================

    async def mark_read(self, job_id: str, receiver_id: str) -> int:
        """대화방에서 receiver에게 온 읽지 않은 메시지를 모두 읽음 처리"""
        result = await Message.find(_unread_filter(job_id, receiver_id)).update_many(
            {"$set": {"read": True}}
        )

        modified = getattr(result, "modified_count", 0) if result is not None else 0
        log_database_operation(
            logger, "mark_read", "messages",
            affected_rows=modified, job_id=job_id, receiver_id=receiver_id,
        )
        return modified

    async def unread_count(self, job_id: str, receiver_id: str) -> int:
        """대화방에서 receiver의 읽지 않은 메시지 수"""
        return await Message.find(_unread_filter(job_id, receiver_id)).count()

    # =========================================================================
    # 사용자 표시 이름
    # =========================================================================

    async def usernames(self, user_ids: Iterable[Any]) -> Dict[str, str]:
        """사용자 ID → username 매핑 (없는 사용자는 생략)"""
        ids = {to_object_id(str(user_id), "user_id") for user_id in user_ids if user_id}
        if not ids:
            return {}

        users = await User.find({"_id": {"$in": list(ids)}}).to_list()
        return {str(user.id): user.username for user in users}

    # =========================================================================
    # 대화 목록
    # =========================================================================

    async def list_conversations(
        self,
        user_id: str,
        scan_limit: int = 200,
        max_conversations: int = 50,
    ) -> List[ConversationSummary]:
        """
        사용자의 최근 대화 목록

        사용자가 주고받은 최근 메시지를 scan_limit개까지 훑어 상대방 기준으로 중복을 제거하고,
        대화방마다 읽지 않은 메시지 수를 함께 반환합니다.
        """
        uid = to_object_id(user_id, "user_id")
        messages = await Message.find(_involving(uid)).sort(NEWEST_FIRST).limit(scan_limit).to_list()

        seen = set()
        latest: List[Message] = []
        for message in messages:
            other = message.receiver_id if message.sender_id == uid else message.sender_id
            if other == uid or other in seen:
                continue
            seen.add(other)
            latest.append(message)
            if len(latest) >= max_conversations:
                break

        names = await self.usernames(seen)

        conversations = []
        for message in latest:
            other = message.receiver_id if message.sender_id == uid else message.sender_id
            unread = await self.unread_count(str(message.job_id), user_id)
            conversations.append(ConversationSummary(
                user_id=str(other),
                username=names.get(str(other), "User"),
                last_message=message.body or "",
                job_id=str(message.job_id),
                created_at=message.created_at,
                unread=unread,
            ))
        return conversations

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator, Dict, List, Optional, Set
from beanie import PydanticObjectId
from httpx import AsyncClient, ASGITransport

from skillnest_chat.main import create_app
from skillnest_chat.models.messages import Message
from skillnest_chat.schemas.message import ConversationSummary
from skillnest_chat.services.presence_service import PresenceTracker
from skillnest_chat.utils.time_utils import truncate_to_millis
from skillnest_chat.websockets.connection_manager import ConnectionManager
from skillnest_chat.websockets.gateway import ConnectionGateway
from skillnest_chat.websockets.handlers import ChatEventHandler


# 테스트용 사용자/대화방 ID
CLIENT_ID = "client-1"
FREELANCER_ID = "freelancer-1"
OUTSIDER_ID = "outsider-1"
JOB_1 = "J1"
JOB_2 = "J2"

TOKENS = {
    "client-token": CLIENT_ID,
    "freelancer-token": FREELANCER_ID,
    "outsider-token": OUTSIDER_ID,
}


class FakeWebSocket:
    """전송된 JSON을 기록하는 가짜 WebSocket"""

    def __init__(self, fail: bool = False):
        self.sent: List[dict] = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    def of_type(self, event_type: str) -> List[dict]:
        return [event for event in self.sent if event["type"] == event_type]


class FakeMessageStore:
    """인메모리 메시지 저장소"""

    def __init__(self):
        self.messages: List[Message] = []
        self.names: Dict[str, str] = {CLIENT_ID: "alice", FREELANCER_ID: "bob"}
        self.fail = False
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def _check(self):
        if self.fail:
            raise ConnectionError("message store unavailable")

    def _now(self) -> datetime:
        # 실제 저장소처럼 밀리초 단위로 잘린 시각
        self._clock += timedelta(seconds=1, microseconds=234567)
        return truncate_to_millis(self._clock)

    def seed(self, job_id: str, sender_id: str, receiver_id: str, body: str, read: bool = False) -> Message:
        message = Message.model_construct(
            id=PydanticObjectId(),
            job_id=job_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            body=body,
            attachments=[],
            read=read,
            created_at=self._now(),
        )
        self.messages.append(message)
        return message

    def in_job(self, job_id: str) -> List[Message]:
        return [message for message in self.messages if message.job_id == job_id]

    async def create_message(self, job_id, sender_id, receiver_id, body, attachments=None):
        self._check()
        message = self.seed(job_id, sender_id, receiver_id, body)
        message.attachments.extend(attachments or [])
        return message

    async def recent_messages(self, job_id, limit=50):
        self._check()
        newest_first = sorted(self.in_job(job_id), key=lambda m: m.created_at, reverse=True)[:limit]
        return list(reversed(newest_first))

    async def mark_read(self, job_id, receiver_id):
        self._check()
        modified = 0
        for index, message in enumerate(self.messages):
            if message.job_id == job_id and message.receiver_id == receiver_id and not message.read:
                self.messages[index] = message.model_copy(update={"read": True})
                modified += 1
        return modified

    async def unread_count(self, job_id, receiver_id):
        return sum(
            1 for message in self.in_job(job_id)
            if message.receiver_id == receiver_id and not message.read
        )

    async def usernames(self, user_ids):
        self._check()
        return {str(uid): self.names[str(uid)] for uid in user_ids if str(uid) in self.names}

    async def list_conversations(self, user_id, scan_limit=200, max_conversations=50):
        seen: Set[str] = set()
        conversations = []
        for message in sorted(self.messages, key=lambda m: m.created_at, reverse=True)[:scan_limit]:
            if user_id not in (message.sender_id, message.receiver_id):
                continue
            other = message.receiver_id if message.sender_id == user_id else message.sender_id
            if other == user_id or other in seen:
                continue
            seen.add(other)
            conversations.append(ConversationSummary(
                user_id=other,
                username=self.names.get(other, "User"),
                last_message=message.body,
                job_id=message.job_id,
                created_at=message.created_at,
                unread=await self.unread_count(message.job_id, user_id),
            ))
        return conversations[:max_conversations]


class FakeConversationDirectory:
    """Job별 참여자/수신자 고정 응답"""

    def __init__(self):
        self.participants: Dict[str, Set[str]] = {
            JOB_1: {CLIENT_ID, FREELANCER_ID},
            JOB_2: {CLIENT_ID, FREELANCER_ID},
        }
        self.receivers: Dict[str, Dict[str, str]] = {
            JOB_1: {CLIENT_ID: FREELANCER_ID, FREELANCER_ID: CLIENT_ID},
            JOB_2: {CLIENT_ID: FREELANCER_ID, FREELANCER_ID: CLIENT_ID},
        }
        self.participant_checks = 0

    async def get_job(self, job_id):
        return {"id": job_id} if job_id in self.participants else None

    async def is_participant(self, job_id, user_id):
        self.participant_checks += 1
        return user_id in self.participants.get(job_id, set())

    async def resolve_receiver(self, job_id, sender_id) -> Optional[str]:
        return self.receivers.get(job_id, {}).get(sender_id)


class FakeSessionStore:
    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = dict(TOKENS if tokens is None else tokens)
        self.fail = False

    async def resolve_user_id(self, token):
        if self.fail:
            raise ConnectionError("session store unavailable")
        return self.tokens.get(token) if token else None


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def presence(manager) -> PresenceTracker:
    return PresenceTracker(manager)


@pytest.fixture
def message_store() -> FakeMessageStore:
    return FakeMessageStore()


@pytest.fixture
def directory() -> FakeConversationDirectory:
    return FakeConversationDirectory()


@pytest.fixture
def sessions() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture
def handler(manager, presence, message_store, directory) -> ChatEventHandler:
    return ChatEventHandler(manager, presence, message_store, directory, recent_messages_limit=50)


@pytest.fixture
def gateway(manager, presence, handler, sessions) -> ConnectionGateway:
    return ConnectionGateway(manager, presence, handler, sessions)


@pytest.fixture
def test_app(gateway):
    """DB 연결 없이 가짜 구성요소로 조립한 애플리케이션"""
    return create_app(gateway=gateway, with_databases=False)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def connect(manager):
    """가짜 WebSocket으로 연결을 등록하는 헬퍼"""
    def _connect(user_id: str, fail: bool = False):
        websocket = FakeWebSocket(fail=fail)
        return manager.register(websocket, user_id), websocket
    return _connect

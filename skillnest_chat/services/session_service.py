"""
세션 조회 서비스

마켓플레이스 웹 애플리케이션이 기록한 세션을 읽어 사용자를 식별합니다.
세션은 MongoDB `sessions` 컬렉션(connect-mongo) 또는 Redis(`sess:<id>`)에 있으며
SESSION_BACKEND 설정으로 선택합니다. 세션 생성/삭제는 이 서비스의 책임이 아닙니다.
"""

import base64
import hashlib
import hmac
import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorCollection

from skillnest_chat.core.config import Settings, settings
from skillnest_chat.core.logging import get_logger
from skillnest_chat.database.mongodb import get_database
from skillnest_chat.database.redis import get_redis

logger = get_logger(__name__)

SIGNED_COOKIE_PREFIX = "s:"


def unsign_session_id(token: str, secret: Optional[str]) -> Optional[str]:
    """
    세션 토큰에서 세션 ID를 추출합니다.

    서명된 쿠키 형식(`s:<sid>.<signature>`)이면 HMAC-SHA256 서명을 검증하고,
    서명되지 않은 토큰은 그대로 세션 ID로 사용합니다.

    Returns:
        세션 ID, 서명 검증에 실패하면 None
    """
    token = unquote(token).strip()
    if not token.startswith(SIGNED_COOKIE_PREFIX):
        return token or None

    if not secret:
        logger.warning("Signed session cookie received but no session secret is configured")
        return None

    session_id, _, signature = token[len(SIGNED_COOKIE_PREFIX):].rpartition(".")
    if not session_id or not signature:
        return None

    digest = hmac.new(secret.encode(), session_id.encode(), hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode().rstrip("=")
    if not hmac.compare_digest(expected, signature):
        return None
    return session_id


class SessionStore:
    """세션 저장소 (읽기 전용). 하위 클래스가 load()로 저장된 세션 값을 가져옵니다."""

    def __init__(self, secret: Optional[str] = None):
        self.secret = settings.session_secret if secret is None else secret

    async def load(self, session_id: str) -> Any:
        """저장된 세션 값 (JSON 문자열 또는 dict), 없으면 None"""
        raise NotImplementedError

    async def resolve_user_id(self, token: Optional[str]) -> Optional[str]:
        """
        세션 토큰으로 사용자 ID를 조회합니다.

        Returns:
            사용자 ID, 세션이 없거나 만료되었거나 userId가 없으면 None

        Raises:
            redis.exceptions.RedisError, pymongo.errors.PyMongoError: 세션 저장소에 접근할 수 없는 경우
        """
        if not token:
            return None

        session_id = unsign_session_id(token, self.secret)
        if not session_id:
            return None

        raw = await self.load(session_id)
        if raw is None:
            return None

        if isinstance(raw, dict):
            data = raw
        else:
            try:
                data = json.loads(raw)
            except (TypeError, ValueError):
                logger.warning(f"Malformed session payload for session {session_id[:8]}...")
                return None

        user_id = data.get("userId") if isinstance(data, dict) else None
        return str(user_id) if user_id else None


class RedisSessionStore(SessionStore):
    """Redis 세션 저장소 (`sess:<id>` → JSON)"""

    def __init__(
        self,
        redis_provider: Callable[[], Awaitable[redis.Redis]] = get_redis,
        key_prefix: Optional[str] = None,
        secret: Optional[str] = None,
    ):
        super().__init__(secret)
        self._redis_provider = redis_provider
        self.key_prefix = settings.session_key_prefix if key_prefix is None else key_prefix

    def session_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load(self, session_id: str) -> Optional[str]:
        client = await self._redis_provider()
        return await client.get(self.session_key(session_id))


class MongoSessionStore(SessionStore):
    """
    MongoDB 세션 저장소 (connect-mongo 형식)

    문서 형식: `{_id: <sid>, session: "<JSON>", expires: <Date>}`.
    `expires`가 지난 세션은 TTL 인덱스가 지우기 전이라도 없는 것으로 취급합니다.
    """

    def __init__(
        self,
        collection_provider: Optional[Callable[[], AsyncIOMotorCollection]] = None,
        collection_name: Optional[str] = None,
        secret: Optional[str] = None,
    ):
        super().__init__(secret)
        self.collection_name = settings.session_collection if collection_name is None else collection_name
        self._collection_provider = collection_provider or self._default_collection

    def _default_collection(self) -> AsyncIOMotorCollection:
        return get_database()[self.collection_name]

    async def load(self, session_id: str) -> Any:
        document = await self._collection_provider().find_one({
            "_id": session_id,
            "$or": [
                {"expires": {"$exists": False}},
                {"expires": {"$gt": datetime.utcnow()}},
            ],
        })
        if document is None:
            return None
        return document.get("session")


def create_session_store(config: Optional[Settings] = None) -> SessionStore:
    """설정된 백엔드(mongo/redis)의 세션 저장소를 만듭니다."""
    config = config or settings
    if config.session_backend == "redis":
        return RedisSessionStore(key_prefix=config.session_key_prefix, secret=config.session_secret)
    return MongoSessionStore(collection_name=config.session_collection, secret=config.session_secret)

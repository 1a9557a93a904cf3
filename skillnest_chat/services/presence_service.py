"""
접속 상태(Presence) 서비스

사용자별 활성 WebSocket 연결 수를 프로세스 단위로 관리합니다.
0→1, 1→0 전환에서만 presenceUpdate 이벤트를 전체 연결에 브로드캐스트합니다.
"""

import asyncio
from typing import TYPE_CHECKING, Dict, List

from skillnest_chat.core.logging import get_logger
from skillnest_chat.schemas.events import presence_update_event

if TYPE_CHECKING:
    from skillnest_chat.websockets.connection_manager import ConnectionManager

logger = get_logger(__name__)


class PresenceTracker:
    """사용자별 활성 연결 수 관리"""

    def __init__(self, emitter: "ConnectionManager"):
        self._emitter = emitter
        self._counts: Dict[str, int] = {}
        # 전환 감지와 브로드캐스트를 함께 직렬화
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str) -> bool:
        """
        연결 수를 1 증가시킵니다.

        Returns:
            오프라인 → 온라인 전환이 일어났는지 여부
        """
        async with self._lock:
            count = self._counts.get(user_id, 0) + 1
            self._counts[user_id] = count

            if count != 1:
                return False

            logger.info(f"User {user_id} is online", extra={"event_type": "user_online"})
            await self._emitter.broadcast(presence_update_event(user_id, True))
            return True

    async def disconnect(self, user_id: str) -> bool:
        """
        연결 수를 1 감소시킵니다. 0이 되면 항목을 제거합니다.

        Returns:
            온라인 → 오프라인 전환이 일어났는지 여부
        """
        async with self._lock:
            count = self._counts.get(user_id, 0)
            if count <= 0:
                logger.warning(f"Disconnect for user {user_id} with no active connections ignored")
                return False

            if count > 1:
                self._counts[user_id] = count - 1
                return False

            del self._counts[user_id]
            logger.info(f"User {user_id} is offline", extra={"event_type": "user_offline"})
            await self._emitter.broadcast(presence_update_event(user_id, False))
            return True

    async def ping(self, user_id: str):
        """클라이언트 presence 요청: 온라인 상태를 다시 알립니다."""
        await self._emitter.broadcast(presence_update_event(user_id, True))

    def count(self, user_id: str) -> int:
        return self._counts.get(user_id, 0)

    def is_online(self, user_id: str) -> bool:
        return self._counts.get(user_id, 0) > 0

    def online_users(self) -> List[str]:
        return sorted(self._counts)

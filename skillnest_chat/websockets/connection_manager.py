import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import WebSocket

from skillnest_chat.core.logging import get_logger
from skillnest_chat.schemas.events import notification_event

logger = get_logger(__name__)


@dataclass(eq=False)
class Connection:
    """WebSocket 연결 하나에 대응하는 상태 (연결당 최대 하나의 대화방)"""
    websocket: WebSocket
    user_id: str
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active_conversation_id: Optional[str] = None
    connected_at: datetime = field(default_factory=datetime.utcnow)


class ConnectionManager:
    """
    연결 레지스트리, 대화방 멤버십, 이벤트 전송을 담당합니다.

    상태 변경 메서드는 await 없이 동작하므로 이벤트 루프 안에서 원자적입니다.
    전송 메서드는 대상 목록의 스냅샷에 대해 순차 전송하며, 실패한 소켓은 로그만 남기고 건너뜁니다.
    """

    def __init__(self):
        # 연결 ID별 연결: {connection_id: Connection}
        self.connections: Dict[str, Connection] = {}
        # 대화방별 연결 그룹: {room_id: {connection_id}}
        self.room_connections: Dict[str, Set[str]] = {}
        # 사용자별 연결 그룹: {user_id: {connection_id}}
        self.user_connections: Dict[str, Set[str]] = {}

    # =========================================================================
    # 연결 등록/해제
    # =========================================================================

    def register(self, websocket: WebSocket, user_id: str) -> Connection:
        """인증된 WebSocket을 등록합니다."""
        connection = Connection(websocket=websocket, user_id=user_id)
        self.connections[connection.connection_id] = connection
        self.user_connections.setdefault(user_id, set()).add(connection.connection_id)

        logger.info(f"Connection {connection.connection_id} registered for user {user_id}")
        return connection

    def unregister(self, connection: Connection):
        """연결을 대화방과 레지스트리에서 제거합니다."""
        self.leave_room(connection)

        self.connections.pop(connection.connection_id, None)
        user_group = self.user_connections.get(connection.user_id)
        if user_group is not None:
            user_group.discard(connection.connection_id)
            if not user_group:
                del self.user_connections[connection.user_id]

        logger.info(f"Connection {connection.connection_id} unregistered for user {connection.user_id}")

    # =========================================================================
    # 대화방 멤버십
    # =========================================================================

    def join_room(self, connection: Connection, room_id: str) -> Optional[str]:
        """
        연결을 대화방에 입장시킵니다. 이전 대화방에서는 퇴장합니다.

        Returns:
            이전 대화방 ID (없으면 None)
        """
        previous = connection.active_conversation_id
        if previous == room_id:
            return previous

        self.leave_room(connection)
        self.room_connections.setdefault(room_id, set()).add(connection.connection_id)
        connection.active_conversation_id = room_id
        return previous

    def leave_room(self, connection: Connection):
        room_id = connection.active_conversation_id
        if room_id is None:
            return

        members = self.room_connections.get(room_id)
        if members is not None:
            members.discard(connection.connection_id)
            # 대화방에 연결이 없으면 방 자체를 제거
            if not members:
                del self.room_connections[room_id]
        connection.active_conversation_id = None

    def get_room_connections(self, room_id: str) -> List[Connection]:
        return self._resolve(self.room_connections.get(room_id, ()))

    def get_user_connections(self, user_id: str) -> List[Connection]:
        return self._resolve(self.user_connections.get(user_id, ()))

    def get_room_users(self, room_id: str) -> List[str]:
        """대화방에 연결된 사용자 목록을 반환합니다."""
        return sorted({connection.user_id for connection in self.get_room_connections(room_id)})

    def get_connection_count_in_room(self, room_id: str) -> int:
        return len(self.room_connections.get(room_id, ()))

    def is_user_connected(self, user_id: str) -> bool:
        return user_id in self.user_connections

    def _resolve(self, connection_ids: Iterable[str]) -> List[Connection]:
        return [self.connections[cid] for cid in list(connection_ids) if cid in self.connections]

    # =========================================================================
    # 이벤트 전송
    # =========================================================================

    async def send_to_connection(self, connection: Connection, data: Dict[str, Any]) -> bool:
        """특정 연결에 JSON 이벤트를 전송합니다."""
        try:
            await connection.websocket.send_json(data)
            return True
        except Exception as e:
            logger.error(
                f"Failed to send {data.get('type')} to connection {connection.connection_id} "
                f"(user {connection.user_id}): {e}"
            )
            return False

    async def _fan_out(self, targets: List[Connection], data: Dict[str, Any]) -> int:
        delivered = 0
        for connection in targets:
            if await self.send_to_connection(connection, data):
                delivered += 1
        return delivered

    async def broadcast_to_room(
        self,
        room_id: str,
        data: Dict[str, Any],
        exclude: Optional[Connection] = None
    ) -> int:
        """대화방의 모든 연결에 이벤트를 브로드캐스트합니다."""
        targets = [c for c in self.get_room_connections(room_id) if c is not exclude]
        return await self._fan_out(targets, data)

    async def send_to_user(self, user_id: str, data: Dict[str, Any]) -> int:
        """특정 사용자의 모든 연결에 이벤트를 전송합니다."""
        return await self._fan_out(self.get_user_connections(user_id), data)

    async def broadcast(self, data: Dict[str, Any]) -> int:
        """모든 연결에 이벤트를 브로드캐스트합니다."""
        return await self._fan_out(list(self.connections.values()), data)

    async def notify_user(self, user_id: str, kind: str, **fields: Any) -> int:
        """마켓플레이스 알림(hired, proposal_accepted 등)을 사용자에게 전송합니다."""
        return await self.send_to_user(user_id, notification_event(kind, **fields))

"""
WebSocket 실시간 채팅 모듈

주요 구성 요소:
- connection_manager: 연결/대화방 관리 및 이벤트 전송
- auth: 세션 기반 WebSocket 인증
- handlers: 채팅 이벤트 처리 (입장, 메시지, 읽음, 타이핑)
- gateway: 연결 수명 관리
"""

from .connection_manager import Connection, ConnectionManager
from .auth import authenticate_websocket, extract_session_token
from .handlers import ChatEventHandler
from .gateway import ConnectionGateway, build_gateway

__all__ = [
    "Connection",
    "ConnectionManager",
    "authenticate_websocket",
    "extract_session_token",
    "ChatEventHandler",
    "ConnectionGateway",
    "build_gateway",
]

from fastapi import APIRouter, Depends, WebSocket

from skillnest_chat.api.dependencies import get_gateway
from skillnest_chat.websockets.gateway import ConnectionGateway

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/chat")
async def websocket_endpoint(
    websocket: WebSocket,
    gateway: ConnectionGateway = Depends(get_gateway),
):
    """
    채팅 WebSocket 연결 엔드포인트

    세션 쿠키, Authorization: Bearer 헤더 또는 token 쿼리 파라미터로 인증합니다.
    대화방 입장은 연결 후 joinRoom 이벤트로 요청합니다.
    """
    await gateway.handle(websocket)

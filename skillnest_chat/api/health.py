from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status

from skillnest_chat.api.dependencies import get_gateway
from skillnest_chat.core.config import settings
from skillnest_chat.database import check_database_health
from skillnest_chat.websockets.gateway import ConnectionGateway

router = APIRouter(tags=["Health"])


def _label(ok: bool) -> str:
    return "connected" if ok else "disconnected"


@router.get("/health")
async def health_check(gateway: ConnectionGateway = Depends(get_gateway)):
    """저장소 연결 상태와 현재 WebSocket 연결 수"""
    db = await check_database_health()
    return {
        "status": "healthy" if db["overall"] else "unhealthy",
        "timestamp": datetime.utcnow(),
        "service": settings.app_name,
        "databases": {name: _label(ok) for name, ok in db.items() if name != "overall"},
        "websocket": {
            "connections": len(gateway.manager.connections),
            "online_users": len(gateway.presence.online_users()),
        },
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness: 메시지/세션 저장소 모두 연결되어야 ready"""
    db = await check_database_health()
    if not db["overall"]:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready - message or session store unavailable"
        )
    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive", "timestamp": datetime.utcnow()}

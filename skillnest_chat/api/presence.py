from fastapi import APIRouter, Depends

from skillnest_chat.api.dependencies import get_current_user_id, get_presence_tracker
from skillnest_chat.schemas.message import OnlineUsers, PresenceStatus
from skillnest_chat.services.presence_service import PresenceTracker

router = APIRouter(prefix="/presence", tags=["Presence"])


@router.get("/online", response_model=OnlineUsers)
async def get_online_users(
    _: str = Depends(get_current_user_id),
    presence: PresenceTracker = Depends(get_presence_tracker),
):
    """이 프로세스에 WebSocket으로 접속 중인 사용자 목록"""
    users = presence.online_users()
    return OnlineUsers(users=users, count=len(users))


@router.get("/{user_id}", response_model=PresenceStatus)
async def get_user_presence(
    user_id: str,
    _: str = Depends(get_current_user_id),
    presence: PresenceTracker = Depends(get_presence_tracker),
):
    """특정 사용자의 접속 상태"""
    return PresenceStatus(
        user_id=user_id,
        online=presence.is_online(user_id),
        connections=presence.count(user_id),
    )

"""
내부 알림 API

채용/제안서 상태 변경 시 웹 애플리케이션이 호출하며, 해당 사용자의 모든 WebSocket 연결에
`notification` 이벤트를 전달합니다. 오프라인 사용자에게는 저장하지 않고 버립니다.
"""

import hmac
from typing import Optional
from fastapi import APIRouter, Depends, Header, status

from skillnest_chat.api.dependencies import get_gateway
from skillnest_chat.core.config import settings
from skillnest_chat.core.errors import AuthenticationException, AuthorizationException
from skillnest_chat.core.logging import get_logger, log_security_event
from skillnest_chat.schemas.notification import NotificationRequest, NotificationResult
from skillnest_chat.websockets.gateway import ConnectionGateway

logger = get_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def require_internal_token(x_internal_token: Optional[str] = Header(None)) -> None:
    """X-Internal-Token 헤더 검증 (INTERNAL_API_TOKEN 미설정 시 403)"""
    if not settings.internal_api_token:
        raise AuthorizationException("Internal notifications are disabled")
    if not x_internal_token or not hmac.compare_digest(x_internal_token, settings.internal_api_token):
        log_security_event(logger, "internal_token_rejected")
        raise AuthenticationException("Invalid internal API token")


@router.post(
    "/{user_id}",
    response_model=NotificationResult,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(require_internal_token)],
)
async def notify_user(
    user_id: str,
    notification: NotificationRequest,
    gateway: ConnectionGateway = Depends(get_gateway),
):
    delivered = await gateway.manager.notify_user(
        user_id,
        notification.type,
        proposalId=notification.proposal_id,
        jobId=notification.job_id,
    )
    logger.info(f"Notification {notification.type} for user {user_id} delivered to {delivered} connection(s)")
    return NotificationResult(user_id=user_id, delivered=delivered)

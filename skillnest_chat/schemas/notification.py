from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

NotificationKind = Literal["hired", "unhired", "proposal_accepted", "proposal_rejected"]


class NotificationRequest(BaseModel):
    """웹 애플리케이션이 보내는 마켓플레이스 알림"""
    model_config = ConfigDict(populate_by_name=True)

    type: NotificationKind = Field(..., description="알림 종류")
    proposal_id: Optional[str] = Field(None, alias="proposalId")
    job_id: Optional[str] = Field(None, alias="jobId")


class NotificationResult(BaseModel):
    user_id: str = Field(..., serialization_alias="userId")
    delivered: int = Field(..., ge=0, description="알림을 받은 연결 수 (오프라인이면 0)")

"""
마켓플레이스 거래 문서 (읽기 전용)

대화방은 Job 단위로 묶이며, 참여자 판별과 수신자 결정에 Job/Proposal/Contract를 조회합니다.
"""

from datetime import datetime
from typing import Optional
from beanie import Document, PydanticObjectId
from pydantic import Field


class Job(Document):
    title: Optional[str] = None
    client: Optional[PydanticObjectId] = Field(None, description="User who posted the job")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Settings:
        name = "jobs"


class Proposal(Document):
    job: PydanticObjectId
    freelancer: Optional[PydanticObjectId] = None
    status: str = Field(default="pending", description="pending, hired, accepted or rejected")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Settings:
        name = "proposals"


class Contract(Document):
    job: PydanticObjectId
    proposal: Optional[PydanticObjectId] = None
    client: Optional[PydanticObjectId] = None
    freelancer: Optional[PydanticObjectId] = None
    status: str = Field(default="active", description="active, completed or cancelled")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Settings:
        name = "contracts"

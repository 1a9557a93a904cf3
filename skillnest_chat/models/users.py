from datetime import datetime
from typing import Optional
from beanie import Document
from pydantic import Field


class User(Document):
    """마켓플레이스 사용자 (읽기 전용, 표시 이름 조회용)"""
    username: str
    email: Optional[str] = None
    role: Optional[str] = Field(None, description="client, freelancer or admin")
    profile_image: Optional[str] = Field(None, alias="profileImage")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Settings:
        name = "users"

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"

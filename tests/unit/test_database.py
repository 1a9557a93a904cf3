import pytest
from unittest.mock import AsyncMock

import skillnest_chat.database as database
from skillnest_chat.core.config import settings
from skillnest_chat.database import mongodb


@pytest.fixture
def connections(monkeypatch):
    mocks = {
        "init_mongodb": AsyncMock(),
        "init_redis": AsyncMock(),
        "check_mongo_connection": AsyncMock(return_value=True),
        "check_redis_connection": AsyncMock(return_value=False),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(database, name, mock)
    return mocks


class TestSessionBackendSelection:
    """세션 백엔드에 따른 연결/헬스 체크 테스트"""

    @pytest.mark.asyncio
    async def test_mongo_sessions_skip_redis(self, connections, monkeypatch):
        monkeypatch.setattr(settings, "session_backend", "mongo")

        await database.init_databases()
        health = await database.check_database_health()

        connections["init_mongodb"].assert_awaited_once()
        connections["init_redis"].assert_not_awaited()
        assert health == {"mongodb": True, "overall": True}

    @pytest.mark.asyncio
    async def test_redis_sessions_require_redis(self, connections, monkeypatch):
        monkeypatch.setattr(settings, "session_backend", "redis")

        await database.init_databases()
        health = await database.check_database_health()

        connections["init_redis"].assert_awaited_once()
        assert health == {"mongodb": True, "redis": False, "overall": False}


class TestGetDatabase:
    def test_before_init(self, monkeypatch):
        monkeypatch.setattr(mongodb, "database", None)

        with pytest.raises(RuntimeError):
            mongodb.get_database()

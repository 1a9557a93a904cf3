from typing import Dict

from skillnest_chat.core.config import settings
from skillnest_chat.core.logging import get_logger
from .mongodb import init_mongodb, close_mongo_connection, check_mongo_connection, get_database
from .redis import init_redis, close_redis, check_redis_connection, get_redis

logger = get_logger(__name__)


def uses_redis_sessions() -> bool:
    return settings.session_backend == "redis"


async def init_databases():
    """
    메시지 저장소(MongoDB)와 세션 저장소 연결. 하나라도 실패하면 시작하지 않습니다.

    세션 저장소가 MongoDB(`sessions` 컬렉션)이면 Redis는 연결하지 않습니다.
    """
    await init_mongodb()
    if uses_redis_sessions():
        await init_redis()
    logger.info(f"Message store and session store ({settings.session_backend}) ready")


async def close_databases():
    await close_redis()
    await close_mongo_connection()


async def check_database_health() -> Dict[str, bool]:
    mongodb = await check_mongo_connection()
    if uses_redis_sessions():
        redis = await check_redis_connection()
        return {"mongodb": mongodb, "redis": redis, "overall": mongodb and redis}
    return {"mongodb": mongodb, "overall": mongodb}


__all__ = [
    "init_databases",
    "close_databases",
    "check_database_health",
    "get_database",
    "get_redis",
]

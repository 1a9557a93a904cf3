"""
Redis 연결

웹 애플리케이션이 기록한 세션(`sess:<id>`)을 읽기 위한 클라이언트입니다.
이 서비스는 Redis에 쓰지 않습니다.
"""

from typing import Optional
import redis.asyncio as redis
from redis.asyncio import ConnectionPool
from redis.exceptions import RedisError

from skillnest_chat.core.config import settings
from skillnest_chat.core.logging import get_logger

logger = get_logger(__name__)

redis_client: Optional[redis.Redis] = None


def create_redis_pool() -> ConnectionPool:
    # 세션 값은 JSON 문자열이므로 str로 디코딩
    return ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        decode_responses=True,
        encoding="utf-8",
    )


async def init_redis():
    """연결 풀을 만들고 ping으로 세션 저장소 접근을 확인합니다."""
    global redis_client

    client = redis.Redis(connection_pool=create_redis_pool())
    try:
        await client.ping()
    except RedisError as e:
        logger.error(f"Session store (Redis) unreachable at startup: {e}")
        await client.aclose(close_connection_pool=True)
        raise

    redis_client = client
    logger.info(f"Redis session store connected (pool size {settings.redis_max_connections})")


async def close_redis():
    global redis_client

    if redis_client is None:
        return
    try:
        await redis_client.aclose(close_connection_pool=True)
        logger.info("Redis connection closed")
    except RedisError as e:
        logger.error(f"Error closing Redis connection: {e}")
    finally:
        redis_client = None


async def get_redis() -> redis.Redis:
    """현재 클라이언트 (초기화 전이면 연결)"""
    if redis_client is None:
        await init_redis()
    return redis_client


async def check_redis_connection() -> bool:
    if redis_client is None:
        return False
    try:
        return bool(await redis_client.ping())
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False

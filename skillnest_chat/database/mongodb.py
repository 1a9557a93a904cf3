"""
MongoDB 연결 및 Beanie 초기화

메시지는 이 서비스가 기록하고, 사용자/Job/제안서/계약 문서는 읽기만 합니다.
"""

from typing import Optional
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from skillnest_chat.core.config import settings
from skillnest_chat.core.logging import get_logger
from skillnest_chat.models import DOCUMENT_MODELS

logger = get_logger(__name__)

client: Optional[AsyncIOMotorClient] = None
database: Optional[AsyncIOMotorDatabase] = None


def create_mongo_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(
        settings.mongo_url,
        serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
        socketTimeoutMS=settings.mongo_socket_timeout_ms,
        uuidRepresentation="standard",
    )


async def init_mongodb():
    """클라이언트를 만들고 문서 모델(인덱스 포함)을 등록합니다."""
    global client, database

    client = create_mongo_client()
    database = client[settings.mongodb_db_name]
    try:
        await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    except PyMongoError as e:
        logger.error(f"Beanie initialization failed for '{settings.mongodb_db_name}': {e}")
        raise

    logger.info(
        f"MongoDB '{settings.mongodb_db_name}' initialized "
        f"({', '.join(model.__name__ for model in DOCUMENT_MODELS)})"
    )


async def check_mongo_connection() -> bool:
    if client is None:
        return False
    try:
        await client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return False


async def close_mongo_connection():
    global client, database

    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    database = None


def get_database() -> AsyncIOMotorDatabase:
    """Beanie 모델 밖의 컬렉션(웹 애플리케이션 세션 등)에 접근할 때 사용"""
    if database is None:
        raise RuntimeError("MongoDB not initialized. Call init_mongodb() first.")
    return database

"""
SkillNest Chat - FastAPI Application

Job 단위 대화방 채팅, 접속 상태, 미읽음 알림을 WebSocket으로 중계하는 서비스
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware

from skillnest_chat.api import ROUTERS
from skillnest_chat.core.config import settings
from skillnest_chat.core.logging import get_logger, setup_logging
from skillnest_chat.database import init_databases, close_databases
from skillnest_chat.middleware.error_handler import ErrorHandlerMiddleware, create_http_exception_handler
from skillnest_chat.middleware.logging_middleware import LoggingMiddleware
from skillnest_chat.websockets.gateway import ConnectionGateway, build_gateway

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger.info(f"{settings.app_name} starting up...")
    await init_databases()
    yield
    # Shutdown
    logger.info(f"{settings.app_name} shutting down...")
    await close_databases()


def create_app(gateway: Optional[ConnectionGateway] = None, with_databases: bool = True) -> FastAPI:
    """
    애플리케이션 생성

    Args:
        gateway: WebSocket 게이트웨이 (기본값: 설정으로 조립한 게이트웨이)
        with_databases: 시작/종료 시 MongoDB, Redis 연결을 관리할지 여부
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan if with_databases else None
    )
    app.state.gateway = gateway or build_gateway(settings)

    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(HTTPException, create_http_exception_handler())

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "service": settings.app_name,
            "version": settings.version,
            "status": "running"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "skillnest_chat.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

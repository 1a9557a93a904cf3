from typing import List, Literal, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    """SkillNest Chat 설정"""

    # Application
    app_name: str = "SkillNest Chat"
    version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database - MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "skillnest-dev"
    mongo_server_selection_timeout_ms: int = 5000
    mongo_socket_timeout_ms: int = 45000

    # Database - Redis (session_backend="redis"일 때 세션 저장소)
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 20

    # Session
    session_backend: Literal["mongo", "redis"] = "mongo"
    session_cookie_name: str = "connect.sid"
    session_collection: str = "sessions"  # mongo: connect-mongo 컬렉션
    session_key_prefix: str = "sess:"  # redis: 세션 키 접두사
    session_secret: Optional[str] = None  # 서명된 쿠키(s:<sid>.<sig>) 검증용

    # Internal API (웹 애플리케이션 → 채팅 서버 알림 전달). 설정하지 않으면 비활성화
    internal_api_token: Optional[str] = None

    # Chat
    recent_messages_limit: int = 50
    conversation_scan_limit: int = 200
    conversation_list_limit: int = 50
    unread_update_scope: Literal["recipient", "all"] = "recipient"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # 추가 환경변수 무시


settings = Settings()

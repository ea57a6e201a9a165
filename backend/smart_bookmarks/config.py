"""应用配置"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
from pathlib import Path
import os

# 确定项目根目录（支持本地开发和 Docker 部署）
# 本地开发: backend/smart_bookmarks/config.py -> 项目根目录是 ../../
# Docker: /app/smart_bookmarks/config.py -> 数据目录是 /app/data
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent  # backend 目录
_project_root = _backend_dir.parent  # 项目根目录

# 检测运行环境
if os.path.exists("/app/data"):
    # Docker 环境
    _data_dir = Path("/app/data")
    _env_file = Path("/app/.env") if Path("/app/.env").exists() else None
else:
    # 本地开发环境
    _data_dir = _project_root / "data"
    _env_file = _project_root / ".env" if (_project_root / ".env").exists() else None


class Settings(BaseSettings):
    """应用设置"""
    # 应用
    APP_NAME: str = "Smart Bookmarks"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # 数据库（默认使用项目根目录的 data 文件夹）
    DATABASE_URL: str = f"sqlite+aiosqlite:///{_data_dir}/bookmarks.db"

    # 日志
    LOG_FILE: str = str(_data_dir / "backend.log")
    LOG_LEVEL: str = "INFO"

    # JWT 会话
    JWT_SECRET_KEY: str = "change-this-secret-key-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 天
    OAUTH_STATE_EXPIRE_MINUTES: int = 10

    # 会话 Cookie
    SESSION_COOKIE_NAME: str = "sb_session"
    SESSION_COOKIE_SECURE: bool = False

    # CORS（支持默认 80/443 端口和开发端口）
    CORS_ORIGINS: list[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "https://localhost",
        "https://localhost:3000",
    ]

    # 第三方登录（默认 Google，任何 OAuth 2.0 / OIDC 提供方均可）
    OAUTH_CLIENT_ID: Optional[str] = None
    OAUTH_CLIENT_SECRET: Optional[str] = None
    OAUTH_AUTHORIZE_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    OAUTH_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    OAUTH_USERINFO_URL: str = "https://openidconnect.googleapis.com/v1/userinfo"
    OAUTH_SCOPE: str = "openid email profile"
    OAUTH_REDIRECT_URI: str = "http://localhost:8000/api/auth/callback"
    OAUTH_TIMEOUT: float = 10.0

    # 实时同步
    REALTIME_QUEUE_SIZE: int = 100  # 单个订阅的缓冲事件数
    REALTIME_PING_INTERVAL: float = 15.0  # SSE 心跳间隔（秒）

    class Config:
        env_file = str(_env_file) if _env_file else ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()


settings = get_settings()

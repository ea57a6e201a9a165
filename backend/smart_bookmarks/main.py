"""FastAPI 应用入口"""
import logging
import logging.config
import os

from .config import settings

# 日志配置
# 使用 FileHandler 直接写入文件，避免 uvicorn --reload 子进程 stderr 重定向问题
LOG_FILE = settings.LOG_FILE
os.makedirs(os.path.dirname(os.path.abspath(LOG_FILE)), exist_ok=True)

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s:%(name)s:%(message)s"}
    },
    "handlers": {
        "file": {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "filename": LOG_FILE,
            "mode": "a",
            "encoding": "utf-8"
        },
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "level": settings.LOG_LEVEL,
        "handlers": ["file", "console"]
    },
    "loggers": {
        "smart_bookmarks": {"level": settings.LOG_LEVEL},
        "httpx": {"level": "WARNING"},
    }
})

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .database import init_db, engine
from .api import api_router
from .realtime import ChangeFeed
from .services import OAuthIdentityProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时
    await init_db()
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} 启动成功")
    yield
    # 关闭时：断开所有推送订阅
    app.state.change_feed.close()
    await engine.dispose()
    logger.info("👋 应用关闭完成")


def create_app() -> FastAPI:
    """创建应用（每个实例拥有独立的变更推送）"""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="个人书签同步 API",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.change_feed = ChangeFeed()
    app.state.identity_provider = OAuthIdentityProvider.from_settings(settings)

    # CORS 配置
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册路由
    app.include_router(api_router, prefix="/api")

    # 健康检查
    @app.get("/health", tags=["系统"], summary="健康检查")
    async def health_check():
        """检查服务运行状态"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "subscribers": app.state.change_feed.subscriber_count(),
        }

    # 根路由
    @app.get("/", tags=["系统"], summary="欢迎页")
    async def root():
        """返回 API 基本信息"""
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/api/docs"
        }

    return app


app = create_app()

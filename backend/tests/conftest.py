"""测试公共配置"""
import os
import tempfile

# 必须在导入 smart_bookmarks 之前设置，配置在导入时读取
_tmp_dir = tempfile.mkdtemp(prefix="smart-bookmarks-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/test.db"
os.environ["LOG_FILE"] = os.path.join(_tmp_dir, "test.log")
os.environ["OAUTH_CLIENT_ID"] = "test-client"
os.environ["OAUTH_CLIENT_SECRET"] = "test-secret"
os.environ["OAUTH_AUTHORIZE_URL"] = "https://idp.test/authorize"
os.environ["OAUTH_TOKEN_URL"] = "https://idp.test/token"
os.environ["OAUTH_USERINFO_URL"] = "https://idp.test/userinfo"

from datetime import datetime

import httpx
import pytest

from smart_bookmarks.database import AsyncSessionLocal, drop_db, engine, init_db
from smart_bookmarks.main import create_app
from smart_bookmarks.models import User
from smart_bookmarks.schemas import BookmarkResponse
from smart_bookmarks.utils.security import create_access_token


@pytest.fixture
async def app():
    await init_db()
    application = create_app()
    yield application
    application.state.change_feed.close()
    await drop_db()
    await engine.dispose()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _create_user(subject: str, email: str) -> User:
    async with AsyncSessionLocal() as session:
        user = User(provider_subject=subject, email=email, full_name=email.split("@")[0])
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def user(app):
    return await _create_user("google-oauth2|alice", "alice@example.com")


@pytest.fixture
async def other_user(app):
    return await _create_user("google-oauth2|bob", "bob@example.com")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture
def make_bookmark():
    """构造书签记录，minute 越大越新"""
    def _make(bookmark_id: str, minute: int = 0, title: str = None) -> BookmarkResponse:
        return BookmarkResponse(
            id=bookmark_id,
            user_id="user-1",
            title=title or bookmark_id,
            url=f"https://{bookmark_id.lower()}.example.com",
            created_at=datetime(2024, 1, 1, 12, minute),
        )
    return _make

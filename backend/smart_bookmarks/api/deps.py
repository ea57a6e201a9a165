"""API 依赖"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..models import User
from ..realtime import ChangeFeed
from ..services import BookmarkStore, OAuthIdentityProvider
from ..utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """从 Bearer Token 或会话 Cookie 中获取当前用户"""
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="未登录",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的令牌",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="用户不存在")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="用户已被禁用")

    return user


def get_change_feed(request: Request) -> ChangeFeed:
    """当前应用实例的变更推送"""
    return request.app.state.change_feed


def get_identity_provider(request: Request) -> OAuthIdentityProvider:
    """当前应用实例的身份提供方"""
    return request.app.state.identity_provider


def get_bookmark_store(
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed)
) -> BookmarkStore:
    """书签存储"""
    return BookmarkStore(db, feed)

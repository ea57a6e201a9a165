"""认证路由（第三方登录）"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...database import get_db
from ...services import OAuthIdentityProvider, IdentityError, upsert_user
from ...utils.security import create_access_token, create_state_token, decode_token, safe_next_path
from ..deps import get_identity_provider

logger = logging.getLogger(__name__)

router = APIRouter()

# 登录失败时跳转的页面
AUTH_ERROR_PATH = "/auth/auth-code-error"


@router.get("/login")
async def login(
    next: Optional[str] = "/",
    provider: OAuthIdentityProvider = Depends(get_identity_provider)
):
    """跳转到身份提供方登录"""
    state = create_state_token(safe_next_path(next))
    try:
        url = provider.authorization_url(state)
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/callback")
async def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    provider: OAuthIdentityProvider = Depends(get_identity_provider),
    db: AsyncSession = Depends(get_db)
):
    """身份提供方回调：换取用户信息、写入资料并下发会话 Cookie"""
    payload = decode_token(state) if state else None
    if not code or payload is None or payload.get("type") != "state":
        logger.warning("OAuth 回调缺少 code 或 state 无效")
        return RedirectResponse(AUTH_ERROR_PATH, status_code=status.HTTP_302_FOUND)

    try:
        profile = await provider.exchange_code(code)
    except IdentityError as e:
        logger.warning(f"OAuth 换取用户信息失败: {e}")
        return RedirectResponse(AUTH_ERROR_PATH, status_code=status.HTTP_302_FOUND)

    user = await upsert_user(db, profile)
    if not user.is_active:
        return RedirectResponse(AUTH_ERROR_PATH, status_code=status.HTTP_302_FOUND)

    response = RedirectResponse(safe_next_path(payload.get("next")), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_access_token(user.id),
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    logger.info(f"用户 {user.id} 登录成功")
    return response


@router.post("/logout")
async def logout(response: Response):
    """退出登录"""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "已退出登录"}

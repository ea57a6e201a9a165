"""
第三方登录（OAuth 2.0 授权码模式）

流程：
1. /api/auth/login 跳转到 authorization_url
2. 身份提供方回调 /api/auth/callback?code=...&state=...
3. exchange_code 用 code 换取 access_token，再读取用户信息
4. upsert_user 写入/更新本地用户资料
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..models import User

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """登录失败"""
    pass


@dataclass
class IdentityProfile:
    """身份提供方返回的用户资料"""
    subject: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: dict) -> "IdentityProfile":
        subject = claims.get("sub") or claims.get("id")
        if not subject:
            raise IdentityError("用户信息缺少 sub")
        return cls(
            subject=str(subject),
            email=claims.get("email"),
            full_name=claims.get("full_name") or claims.get("name"),
            avatar_url=claims.get("avatar_url") or claims.get("picture"),
        )


class OAuthIdentityProvider:
    """通用 OAuth 2.0 / OIDC 身份提供方"""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        authorize_url: str,
        token_url: str,
        userinfo_url: str,
        redirect_uri: str,
        scope: str = "openid email profile",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.authorize_url = authorize_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OAuthIdentityProvider":
        return cls(
            client_id=settings.OAUTH_CLIENT_ID,
            client_secret=settings.OAUTH_CLIENT_SECRET,
            authorize_url=settings.OAUTH_AUTHORIZE_URL,
            token_url=settings.OAUTH_TOKEN_URL,
            userinfo_url=settings.OAUTH_USERINFO_URL,
            redirect_uri=settings.OAUTH_REDIRECT_URI,
            scope=settings.OAUTH_SCOPE,
            timeout=settings.OAUTH_TIMEOUT,
            transport=transport,
        )

    def _require_client(self) -> None:
        if not self.client_id or not self.client_secret:
            raise IdentityError("未配置 OAuth 客户端")

    def authorization_url(self, state: str) -> str:
        """生成跳转到身份提供方的登录地址"""
        self._require_client()
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        })
        return f"{self.authorize_url}?{query}"

    async def exchange_code(self, code: str) -> IdentityProfile:
        """用授权码换取用户资料"""
        self._require_client()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                token_resp = await client.post(
                    self.token_url,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    headers={"Accept": "application/json"},
                )
                token_resp.raise_for_status()
                access_token = token_resp.json().get("access_token")
                if not access_token:
                    raise IdentityError("身份提供方未返回 access_token")

                info_resp = await client.get(
                    self.userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                info_resp.raise_for_status()
                claims = info_resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"OAuth 请求失败: {e.request.url} -> {e.response.status_code}")
            raise IdentityError(f"身份提供方返回 {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning(f"OAuth 请求异常: {e}")
            raise IdentityError("无法连接身份提供方") from e
        except ValueError as e:
            raise IdentityError("身份提供方返回了无效的 JSON") from e

        return IdentityProfile.from_claims(claims)


async def upsert_user(db: AsyncSession, profile: IdentityProfile) -> User:
    """按 provider_subject 创建或更新用户资料"""
    result = await db.execute(select(User).where(User.provider_subject == profile.subject))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(provider_subject=profile.subject)
        db.add(user)
        logger.info(f"新用户登录: {profile.email or profile.subject}")

    user.email = profile.email
    user.full_name = profile.full_name
    user.avatar_url = profile.avatar_url
    user.last_signed_in_at = datetime.utcnow()

    await db.flush()
    await db.refresh(user)
    return user

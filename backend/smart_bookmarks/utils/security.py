"""安全相关工具"""
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError

from ..config import settings


def create_access_token(user_id: str) -> str:
    """创建会话令牌"""
    expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "exp": expire,
        "type": "access"
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_state_token(next_path: str) -> str:
    """创建 OAuth state（携带登录后的跳转路径）"""
    expire = datetime.utcnow() + timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES)
    payload = {
        "next": next_path,
        "exp": expire,
        "type": "state"
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """解码令牌"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def safe_next_path(next_path: Optional[str]) -> str:
    """只允许站内相对路径，防止开放重定向"""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//") or "\\" in next_path:
        return "/"
    return next_path

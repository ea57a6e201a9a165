"""工具函数"""
from .security import create_access_token, create_state_token, decode_token, safe_next_path
from .url import (
    UrlCheck,
    UrlError,
    validate_url,
    normalize_url,
    derive_title,
    normalize_title,
)

__all__ = [
    "create_access_token", "create_state_token", "decode_token", "safe_next_path",
    "UrlCheck", "UrlError", "validate_url", "normalize_url", "derive_title", "normalize_title",
]

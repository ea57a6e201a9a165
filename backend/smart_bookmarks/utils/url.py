"""
URL 规范化与校验

用户输入的网址通常不带协议（如 example.com），这里负责：
- 去除首尾空白，以及中间夹带的制表符和换行（浏览器解析网址时同样忽略它们）
- 缺少协议时补全 https://
- 只允许 http/https
- 主机名需像一个域名（包含 "."）或为 localhost

校验结果以 UrlCheck 返回，不抛异常，便于表单在字段旁直接展示错误。
"""

import re
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit, SplitResult

from pydantic import BaseModel, Field


# 允许的协议
ALLOWED_SCHEMES = ["http", "https"]

# 无法确定主机名时的标题
FALLBACK_TITLE = "Link"

_HTTP_PREFIX = re.compile(r"^https?://", re.IGNORECASE)
_HTTP_EXTRA_SLASHES = re.compile(r"^(https?:)/{3,}", re.IGNORECASE)
# 显式写出的其他协议（ftp://、file:// 等）不补全，交给协议检查拒绝；
# 带点的前缀（example.com://）是主机名而不是协议
_EXPLICIT_SCHEME = re.compile(r"^[a-z][a-z0-9+\-]*://", re.IGNORECASE)
_TAB_OR_NEWLINE = re.compile(r"[\t\r\n]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_FORBIDDEN_HOST_CHARS = re.compile(r"[\s<>\\^|\"`{}]")


class UrlError(str, Enum):
    """URL 校验失败原因"""
    EMPTY_INPUT = "empty_input"
    INVALID_URL = "invalid_url"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    INVALID_HOST = "invalid_host"

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self]


ERROR_MESSAGES = {
    UrlError.EMPTY_INPUT: "URL is required",
    UrlError.INVALID_URL: "Invalid URL",
    UrlError.UNSUPPORTED_SCHEME: "URL must be http or https",
    UrlError.INVALID_HOST: "Enter a valid URL (e.g. example.com)",
}


class UrlCheck(BaseModel):
    """URL 校验结果"""
    ok: bool = Field(..., description="是否通过")
    url: Optional[str] = Field(default=None, description="规范化后的 URL")
    error: Optional[UrlError] = Field(default=None, description="失败原因")

    @classmethod
    def success(cls, url: str) -> "UrlCheck":
        return cls(ok=True, url=url)

    @classmethod
    def fail(cls, error: UrlError) -> "UrlCheck":
        return cls(ok=False, error=error)

    @property
    def message(self) -> Optional[str]:
        """面向用户的错误提示"""
        return self.error.message if self.error else None


def normalize_url(text: str) -> str:
    """
    补全协议

    已带 http:// 或 https://（不区分大小写）的保持原样，多余的斜杠
    （https:///example.com）合并为两个；空输入返回空字符串。
    """
    trimmed = _TAB_OR_NEWLINE.sub("", text.strip())
    if not trimmed:
        return ""
    if _HTTP_PREFIX.match(trimmed):
        return _HTTP_EXTRA_SLASHES.sub(r"\1//", trimmed)
    if _EXPLICIT_SCHEME.match(trimmed):
        return trimmed
    return f"https://{trimmed}"


def _parse_absolute(url: str) -> Optional[SplitResult]:
    """按绝对 URL 解析，失败返回 None"""
    if _CONTROL_CHARS.search(url):
        return None
    try:
        parts = urlsplit(url)
        # 空端口（example.com:/path）等同于默认端口
        if parts.netloc.endswith(":"):
            parts = parts._replace(netloc=parts.netloc[:-1])
        parts.port  # 端口非法时抛出 ValueError
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc or not parts.hostname:
        return None
    if _FORBIDDEN_HOST_CHARS.search(parts.hostname):
        return None
    return parts


def is_valid_host(host: str) -> bool:
    """
    主机名为 localhost 或至少包含一个点

    纯数字主机名（http://1234）是 32 位 IPv4 地址的十进制写法，同样接受。
    """
    if host == "localhost" or "." in host:
        return True
    return host.isascii() and host.isdigit() and int(host) <= 0xFFFFFFFF


def validate_url(text: str) -> UrlCheck:
    """
    校验并规范化用户输入的 URL

    Returns:
        UrlCheck.success(url) 或 UrlCheck.fail(UrlError.*)
    """
    normalized = normalize_url(text)
    if not normalized:
        return UrlCheck.fail(UrlError.EMPTY_INPUT)

    parts = _parse_absolute(normalized)
    if parts is None:
        return UrlCheck.fail(UrlError.INVALID_URL)

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return UrlCheck.fail(UrlError.UNSUPPORTED_SCHEME)

    if not is_valid_host(parts.hostname):
        return UrlCheck.fail(UrlError.INVALID_HOST)

    return UrlCheck.success(normalized)


def derive_title(url: str) -> str:
    """从 URL 中取主机名作为标题，无法解析时返回 FALLBACK_TITLE"""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return FALLBACK_TITLE
    return host or FALLBACK_TITLE


def normalize_title(title: Optional[str], url: str) -> str:
    """用户标题去空白，为空时回退到主机名"""
    cleaned = (title or "").strip()
    return cleaned or derive_title(url)

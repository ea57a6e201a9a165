"""书签相关 Schema"""
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError
from datetime import datetime
from typing import Optional

from ..utils.url import validate_url, normalize_title, UrlError


def _checked_url(value: str) -> str:
    """校验失败时以失败原因作为错误类型，前端据此在 URL 输入框旁提示"""
    check = validate_url(value)
    if not check.ok:
        raise PydanticCustomError(check.error.value, check.error.message)
    return check.url


class BookmarkCreate(BaseModel):
    """创建书签"""
    url: str = Field(..., max_length=2000)
    title: Optional[str] = Field(None, max_length=255)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return _checked_url(v)

    @model_validator(mode="after")
    def fill_title(self) -> "BookmarkCreate":
        """标题为空时使用主机名"""
        self.title = normalize_title(self.title, self.url)
        return self


class BookmarkUpdate(BaseModel):
    """更新书签（只允许修改 url / title）"""
    url: Optional[str] = Field(None, max_length=2000)
    title: Optional[str] = Field(None, max_length=255)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _checked_url(v)


class BookmarkResponse(BaseModel):
    """书签响应"""
    id: str
    user_id: str
    title: str
    url: str
    created_at: datetime

    class Config:
        from_attributes = True


class UrlValidateRequest(BaseModel):
    """URL 校验请求"""
    url: str = ""


class UrlValidateResponse(BaseModel):
    """URL 校验响应"""
    ok: bool
    url: Optional[str] = None
    error: Optional[UrlError] = None
    message: Optional[str] = None
    title: Optional[str] = None  # 校验通过时的默认标题

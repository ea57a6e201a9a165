"""Pydantic Schemas"""
from .user import UserResponse
from .bookmark import (
    BookmarkCreate, BookmarkUpdate, BookmarkResponse,
    UrlValidateRequest, UrlValidateResponse,
)

__all__ = [
    "UserResponse",
    "BookmarkCreate", "BookmarkUpdate", "BookmarkResponse",
    "UrlValidateRequest", "UrlValidateResponse",
]

"""数据模型"""
from .user import User
from .bookmark import Bookmark

__all__ = [
    "User",
    "Bookmark",
]

"""用户模型"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from ..database import Base


class User(Base):
    """用户表（第三方登录后的资料）"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    provider_subject = Column(String(255), unique=True, nullable=False, index=True)  # 身份提供方的 sub
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    last_signed_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # 关系
    bookmarks = relationship("Bookmark", back_populates="user", cascade="all, delete-orphan")

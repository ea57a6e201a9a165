"""用户相关 Schema"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class UserResponse(BaseModel):
    """用户响应"""
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    last_signed_in_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

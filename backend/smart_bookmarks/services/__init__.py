"""业务服务"""
from .store import BookmarkStore, StoreError
from .identity import OAuthIdentityProvider, IdentityProfile, IdentityError, upsert_user

__all__ = [
    "BookmarkStore", "StoreError",
    "OAuthIdentityProvider", "IdentityProfile", "IdentityError", "upsert_user",
]

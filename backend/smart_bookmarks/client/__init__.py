"""书签客户端"""
from .http import BookmarkApiClient, BookmarkApiError
from .views import AddBookmarkForm, BookmarkListView

__all__ = [
    "BookmarkApiClient", "BookmarkApiError",
    "AddBookmarkForm", "BookmarkListView",
]

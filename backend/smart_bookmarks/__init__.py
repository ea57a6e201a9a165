"""Smart Bookmarks 后端"""

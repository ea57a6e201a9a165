"""
书签存储

封装书签表的增删改查，所有操作都限定在单个用户范围内。
写操作提交成功后通过 ChangeFeed 推送对应的变更事件。
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Bookmark
from ..realtime import ChangeFeed, BookmarkInserted, BookmarkUpdated, BookmarkDeleted
from ..schemas import BookmarkCreate, BookmarkUpdate, BookmarkResponse
from ..utils.url import normalize_title

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """存储层错误，message 原样返回给用户"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookmarkStore:
    """书签存储"""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed

    async def list_by_owner(self, owner_id: str) -> List[Bookmark]:
        """按创建时间倒序列出用户的书签"""
        try:
            result = await self.db.execute(
                select(Bookmark)
                .where(Bookmark.user_id == owner_id)
                .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            )
        except SQLAlchemyError as e:
            raise StoreError(self._describe(e)) from e
        return list(result.scalars().all())

    async def get(self, owner_id: str, bookmark_id: str) -> Optional[Bookmark]:
        """获取单个书签（不属于该用户时返回 None）"""
        try:
            result = await self.db.execute(
                select(Bookmark).where(
                    Bookmark.id == bookmark_id,
                    Bookmark.user_id == owner_id
                )
            )
        except SQLAlchemyError as e:
            raise StoreError(self._describe(e)) from e
        return result.scalar_one_or_none()

    async def insert(self, owner_id: str, bookmark_in: BookmarkCreate) -> Bookmark:
        """创建书签"""
        bookmark = Bookmark(
            user_id=owner_id,
            url=bookmark_in.url,
            title=normalize_title(bookmark_in.title, bookmark_in.url),
        )
        self.db.add(bookmark)
        await self._commit()
        await self.db.refresh(bookmark)
        logger.info(f"用户 {owner_id} 新增书签 {bookmark.id}")

        await self._publish(owner_id, BookmarkInserted(record=BookmarkResponse.model_validate(bookmark)))
        return bookmark

    async def update(self, owner_id: str, bookmark_id: str, patch: BookmarkUpdate) -> Optional[Bookmark]:
        """
        修改书签的 url / title

        title 传空字符串时重新使用主机名。书签不存在时返回 None。
        """
        bookmark = await self.get(owner_id, bookmark_id)
        if bookmark is None:
            return None

        if patch.url is not None:
            bookmark.url = patch.url
        if patch.title is not None:
            bookmark.title = normalize_title(patch.title, bookmark.url)

        await self._commit()
        await self.db.refresh(bookmark)
        logger.info(f"用户 {owner_id} 修改书签 {bookmark.id}")

        await self._publish(owner_id, BookmarkUpdated(record=BookmarkResponse.model_validate(bookmark)))
        return bookmark

    async def delete(self, owner_id: str, bookmark_id: str) -> bool:
        """删除书签，不存在时返回 False"""
        bookmark = await self.get(owner_id, bookmark_id)
        if bookmark is None:
            return False

        await self.db.delete(bookmark)
        await self._commit()
        logger.info(f"用户 {owner_id} 删除书签 {bookmark_id}")

        await self._publish(owner_id, BookmarkDeleted(id=bookmark_id))
        return True

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"书签写入失败: {e}")
            raise StoreError(self._describe(e)) from e

    async def _publish(self, owner_id: str, event) -> None:
        if self.feed is not None:
            await self.feed.publish(owner_id, event)

    @staticmethod
    def _describe(error: SQLAlchemyError) -> str:
        orig = getattr(error, "orig", None)
        return str(orig) if orig is not None else str(error)

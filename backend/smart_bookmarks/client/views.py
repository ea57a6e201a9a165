"""
书签界面状态

- AddBookmarkForm: 添加书签表单（校验、提交、错误提示）
- BookmarkListView: 书签列表（首次全量加载，之后按推送事件增量合并）

BookmarkListView 作为异步上下文使用，进入时开始加载并订阅推送，
退出时取消后台任务并释放订阅：

    async with BookmarkListView(api) as view:
        ...
        print(view.bookmarks)
"""

import asyncio
import logging
from typing import List, Optional

import httpx

from ..realtime import ChangeEvent, apply_event
from ..schemas import BookmarkResponse
from ..utils.url import validate_url, normalize_title, UrlError
from .http import BookmarkApiClient, BookmarkApiError

logger = logging.getLogger(__name__)

# 推送断开后重新加载前的等待时间（秒）
RECONNECT_DELAY = 1.0

NETWORK_ERROR_MESSAGE = "网络异常，请稍后重试"


class AddBookmarkForm:
    """添加书签表单"""

    def __init__(self, api: BookmarkApiClient):
        self.api = api
        self.url = ""
        self.title = ""
        self.error: Optional[str] = None
        self.error_code: Optional[UrlError] = None
        self.loading = False

    @property
    def can_submit(self) -> bool:
        return bool(self.url.strip()) and not self.loading

    async def submit(self) -> Optional[BookmarkResponse]:
        """
        提交表单

        校验失败或保存失败时设置 error 并保留输入；成功后清空输入。
        新书签通过推送事件出现在列表中，这里不修改列表。
        """
        self.error = None
        self.error_code = None

        check = validate_url(self.url)
        if not check.ok:
            self.error = check.message
            self.error_code = check.error
            return None

        self.loading = True
        try:
            bookmark = await self.api.create_bookmark(check.url, normalize_title(self.title, check.url))
        except BookmarkApiError as e:
            self.error = e.message
            return None
        except httpx.HTTPError as e:
            logger.warning(f"提交书签失败: {e}")
            self.error = NETWORK_ERROR_MESSAGE
            return None
        finally:
            self.loading = False

        self.url = ""
        self.title = ""
        return bookmark


class BookmarkListView:
    """书签列表"""

    def __init__(self, api: BookmarkApiClient, reconnect_delay: float = RECONNECT_DELAY):
        self.api = api
        self.reconnect_delay = reconnect_delay
        self.bookmarks: List[BookmarkResponse] = []
        self.loading = True
        self._task: Optional[asyncio.Task] = None

    async def load(self) -> None:
        """全量加载（覆盖本地列表）"""
        try:
            self.bookmarks = await self.api.list_bookmarks()
        except BookmarkApiError as e:
            logger.error(f"加载书签失败: {e.message}")
        except httpx.HTTPError as e:
            logger.error(f"加载书签失败: {e}")
        finally:
            self.loading = False

    def apply(self, event: ChangeEvent) -> None:
        """合并单个推送事件"""
        self.bookmarks = apply_event(self.bookmarks, event)

    async def watch(self) -> None:
        """持续接收推送，直到连接断开"""
        async for event in self.api.stream_events():
            self.apply(event)

    async def run(self) -> None:
        """
        加载并接收推送，直到 stop()

        推送断开（服务端缓冲区溢出、重启）或出错后，等待 reconnect_delay
        再全量加载并重新订阅，断开期间漏掉的变更由全量加载补齐。
        """
        while True:
            await self.load()
            try:
                await self.watch()
                logger.info("书签推送已断开，重新加载")
            except BookmarkApiError as e:
                logger.warning(f"书签推送失败: {e.message}")
            except httpx.HTTPError as e:
                logger.warning(f"书签推送连接异常: {e}")
            await asyncio.sleep(self.reconnect_delay)

    async def delete(self, bookmark_id: str) -> None:
        """
        删除书签

        不修改本地列表，也不抛出错误：删除结果以推送事件为准。
        """
        try:
            await self.api.delete_bookmark(bookmark_id)
        except BookmarkApiError as e:
            logger.warning(f"删除书签 {bookmark_id} 失败: {e.message}")
        except httpx.HTTPError as e:
            logger.warning(f"删除书签 {bookmark_id} 失败: {e}")

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("书签同步任务异常退出")

    async def __aenter__(self) -> "BookmarkListView":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

"""
书签 API 客户端

基于 httpx 的异步客户端，覆盖书签增删改查和 SSE 变更推送。
"""

import logging
from typing import AsyncIterator, List, Optional

import httpx

from ..realtime import ChangeEvent, parse_event
from ..schemas import BookmarkResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class BookmarkApiError(Exception):
    """接口返回错误"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    """从 FastAPI 的错误响应中取出简短提示"""
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(detail, list) and detail:
        return detail[0].get("msg", str(detail[0]))
    return str(detail) if detail else f"HTTP {response.status_code}"


class BookmarkApiClient:
    """书签 API 客户端"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BookmarkApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._client.request(method, path, **kwargs)
        if response.is_error:
            raise BookmarkApiError(response.status_code, _error_message(response))
        return response

    async def list_bookmarks(self) -> List[BookmarkResponse]:
        """获取书签列表（最新的在前）"""
        response = await self._request("GET", "/api/bookmarks")
        return [BookmarkResponse.model_validate(item) for item in response.json()]

    async def create_bookmark(self, url: str, title: Optional[str] = None) -> BookmarkResponse:
        response = await self._request("POST", "/api/bookmarks", json={"url": url, "title": title})
        return BookmarkResponse.model_validate(response.json())

    async def update_bookmark(
        self,
        bookmark_id: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
    ) -> BookmarkResponse:
        payload = {}
        if url is not None:
            payload["url"] = url
        if title is not None:
            payload["title"] = title
        response = await self._request("PATCH", f"/api/bookmarks/{bookmark_id}", json=payload)
        return BookmarkResponse.model_validate(response.json())

    async def delete_bookmark(self, bookmark_id: str) -> None:
        await self._request("DELETE", f"/api/bookmarks/{bookmark_id}")

    async def stream_events(self) -> AsyncIterator[ChangeEvent]:
        """订阅书签变更（SSE），连接断开时迭代结束"""
        timeout = httpx.Timeout(self._client.timeout.connect, read=None)
        async with self._client.stream("GET", "/api/bookmarks/stream", timeout=timeout) as response:
            if response.status_code != 200:
                await response.aread()
                raise BookmarkApiError(response.status_code, _error_message(response))

            async for line in response.aiter_lines():
                if not line.startswith("data: "):
                    continue
                try:
                    yield parse_event(line[6:])
                except ValueError as e:
                    logger.warning(f"忽略无法解析的推送: {e}")

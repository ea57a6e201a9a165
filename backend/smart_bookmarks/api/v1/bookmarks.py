"""书签路由"""
import json
import logging
from typing import AsyncGenerator, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...database import get_db
from ...models import User
from ...realtime import ChangeFeed, EventStream
from ...schemas import (
    BookmarkCreate, BookmarkUpdate, BookmarkResponse,
    UrlValidateRequest, UrlValidateResponse,
)
from ...services import BookmarkStore, StoreError
from ...utils.url import validate_url, derive_title
from ..deps import get_current_user, get_change_feed, get_bookmark_store

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_unavailable(e: StoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("", response_model=List[BookmarkResponse])
async def get_bookmarks(
    current_user: User = Depends(get_current_user),
    store: BookmarkStore = Depends(get_bookmark_store)
):
    """获取书签列表（最新的在前）"""
    try:
        return await store.list_by_owner(current_user.id)
    except StoreError as e:
        raise _store_unavailable(e)


@router.post("/validate", response_model=UrlValidateResponse)
async def check_url(
    request: UrlValidateRequest,
    current_user: User = Depends(get_current_user)
):
    """校验 URL，供表单实时提示"""
    check = validate_url(request.url)
    return UrlValidateResponse(
        ok=check.ok,
        url=check.url,
        error=check.error,
        message=check.message,
        title=derive_title(check.url) if check.ok else None,
    )


@router.get("/stream")
async def stream_bookmark_changes(
    request: Request,
    current_user: User = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
    db: AsyncSession = Depends(get_db)
):
    """
    书签变更推送（SSE）

    每条消息为 `data: <事件 JSON>`，空闲时发送 `: ping` 心跳。
    客户端断开或服务关闭时释放订阅。
    """
    owner_id = current_user.id
    # 推送期间不占用数据库连接
    await db.close()

    async def generate() -> AsyncGenerator[str, None]:
        async with feed.observe(owner_id) as stream:
            logger.info(f"用户 {owner_id} 开始接收书签推送")
            yield ": connected\n\n"
            async for chunk in _drain(stream, request):
                yield chunk
        logger.info(f"用户 {owner_id} 书签推送结束")

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )


async def _drain(stream: EventStream, request: Request) -> AsyncGenerator[str, None]:
    """把事件流转换成 SSE 文本"""
    while True:
        if await request.is_disconnected():
            return
        try:
            event = await stream.next(timeout=settings.REALTIME_PING_INTERVAL)
        except StopAsyncIteration:
            return
        if event is None:
            yield ": ping\n\n"
            continue
        yield f"data: {json.dumps(event.model_dump(mode='json'))}\n\n"


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    bookmark_in: BookmarkCreate,
    current_user: User = Depends(get_current_user),
    store: BookmarkStore = Depends(get_bookmark_store)
):
    """创建书签"""
    try:
        return await store.insert(current_user.id, bookmark_in)
    except StoreError as e:
        raise _store_unavailable(e)


@router.patch("/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmark_id: str,
    bookmark_in: BookmarkUpdate,
    current_user: User = Depends(get_current_user),
    store: BookmarkStore = Depends(get_bookmark_store)
):
    """更新书签"""
    try:
        bookmark = await store.update(current_user.id, bookmark_id, bookmark_in)
    except StoreError as e:
        raise _store_unavailable(e)

    if not bookmark:
        raise HTTPException(status_code=404, detail="书签不存在")
    return bookmark


@router.delete("/{bookmark_id}")
async def delete_bookmark(
    bookmark_id: str,
    current_user: User = Depends(get_current_user),
    store: BookmarkStore = Depends(get_bookmark_store)
):
    """删除书签"""
    try:
        deleted = await store.delete(current_user.id, bookmark_id)
    except StoreError as e:
        raise _store_unavailable(e)

    if not deleted:
        raise HTTPException(status_code=404, detail="书签不存在")
    return {"message": "删除成功"}

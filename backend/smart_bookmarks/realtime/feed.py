"""
书签变更推送（进程内发布/订阅）

每个应用实例持有一个 ChangeFeed（挂在 app.state 上），按用户分组订阅。
写操作在事务提交后调用 publish，订阅方只收到自己书签的事件。

两种订阅方式：
- subscribe(owner_id, handler) / unsubscribe(subscription)：回调式
- async with feed.observe(owner_id) as stream：队列式，退出时自动取消订阅，
  SSE 接口使用这种方式
"""

import asyncio
import inspect
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional, Union

from ..config import settings
from .events import ChangeEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[ChangeEvent], Union[None, Awaitable[None]]]

_CLOSED = object()


@dataclass(eq=False)
class Subscription:
    """订阅句柄"""
    owner_id: str
    handler: EventHandler
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active: bool = True


class EventStream:
    """
    队列式订阅

    缓冲区满时说明消费方跟不上，直接结束该流，客户端重连后会全量重新加载。
    """

    def __init__(self, maxsize: int):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.overflowed = False
        self.subscription: Optional[Subscription] = None

    def push(self, event: ChangeEvent) -> None:
        if self.closed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.overflowed = True
            self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def next(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """
        取下一个事件

        超时返回 None；流已结束时抛出 StopAsyncIteration。
        """
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> ChangeEvent:
        return await self.next()


class ChangeFeed:
    """按用户分组的变更推送"""

    def __init__(self, queue_size: Optional[int] = None):
        self._subscriptions: Dict[str, Dict[str, Subscription]] = defaultdict(dict)
        self._streams: Dict[str, EventStream] = {}
        # 0 表示不限长度（asyncio.Queue 的约定）
        self._queue_size = settings.REALTIME_QUEUE_SIZE if queue_size is None else queue_size
        self._closed = False

    def subscribe(self, owner_id: str, handler: EventHandler) -> Subscription:
        """订阅某个用户的书签变更"""
        if self._closed:
            raise RuntimeError("ChangeFeed 已关闭")
        subscription = Subscription(owner_id=owner_id, handler=handler)
        self._subscriptions[owner_id][subscription.id] = subscription
        logger.debug(f"订阅书签变更: owner={owner_id} sub={subscription.id}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """取消订阅（重复调用无副作用）"""
        subscription.active = False
        subs = self._subscriptions.get(subscription.owner_id)
        if subs is None or subs.pop(subscription.id, None) is None:
            return
        if not subs:
            del self._subscriptions[subscription.owner_id]
        stream = self._streams.pop(subscription.id, None)
        if stream is not None:
            stream.close()
        logger.debug(f"取消订阅: owner={subscription.owner_id} sub={subscription.id}")

    async def publish(self, owner_id: str, event: ChangeEvent) -> int:
        """
        推送事件给该用户的所有订阅方

        单个回调出错只记录日志，不影响其他订阅方。

        Returns:
            收到事件的订阅数
        """
        subscriptions = list(self._subscriptions.get(owner_id, {}).values())
        delivered = 0
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                result = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception(f"书签变更回调执行失败: owner={owner_id} sub={subscription.id}")
        logger.debug(f"推送 {event.type} 事件: owner={owner_id} delivered={delivered}")
        return delivered

    @asynccontextmanager
    async def observe(self, owner_id: str) -> AsyncIterator[EventStream]:
        """
        队列式订阅，退出上下文时取消订阅

        推送已关闭时返回一个已结束的流，调用方按正常断开处理。
        """
        stream = EventStream(self._queue_size)
        if self._closed:
            stream.close()
            yield stream
            return
        subscription = self.subscribe(owner_id, stream.push)
        stream.subscription = subscription
        self._streams[subscription.id] = stream
        try:
            yield stream
        finally:
            if stream.overflowed:
                logger.warning(f"订阅缓冲区已满，断开推送: owner={owner_id} sub={subscription.id}")
            self.unsubscribe(subscription)

    def subscriber_count(self, owner_id: Optional[str] = None) -> int:
        """订阅数（不传 owner_id 时统计全部）"""
        if owner_id is not None:
            return len(self._subscriptions.get(owner_id, {}))
        return sum(len(subs) for subs in self._subscriptions.values())

    def close(self) -> None:
        """关闭所有订阅（应用关闭时调用）"""
        self._closed = True
        for subs in list(self._subscriptions.values()):
            for subscription in list(subs.values()):
                self.unsubscribe(subscription)
        logger.info("书签变更推送已关闭")

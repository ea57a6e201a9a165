"""
书签变更事件与本地列表合并

事件是封闭的三选一类型，以 type 字段区分：
- INSERT: 携带新记录
- UPDATE: 携带记录的完整新状态
- DELETE: 只携带 id

apply_event 把单个事件合并进按 created_at 倒序排列的书签列表。
INSERT 直接插到最前面，不重新排序：默认事件按创建顺序到达
（单用户、低频写入场景下成立）。若需要更强的顺序保证，应在
INSERT 时按 created_at 重新排序。
"""

from typing import Annotated, List, Literal, Sequence, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..schemas.bookmark import BookmarkResponse


class BookmarkInserted(BaseModel):
    """新增书签"""
    type: Literal["INSERT"] = "INSERT"
    record: BookmarkResponse


class BookmarkUpdated(BaseModel):
    """书签被修改"""
    type: Literal["UPDATE"] = "UPDATE"
    record: BookmarkResponse


class BookmarkDeleted(BaseModel):
    """书签被删除"""
    type: Literal["DELETE"] = "DELETE"
    id: str


ChangeEvent = Annotated[
    Union[BookmarkInserted, BookmarkUpdated, BookmarkDeleted],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(ChangeEvent)


def parse_event(data: Union[str, bytes, dict]) -> ChangeEvent:
    """从 JSON 文本或字典解析事件"""
    if isinstance(data, (str, bytes)):
        return _event_adapter.validate_json(data)
    return _event_adapter.validate_python(data)


def apply_event(
    bookmarks: Sequence[BookmarkResponse],
    event: ChangeEvent,
) -> List[BookmarkResponse]:
    """
    合并单个变更事件，返回新列表（不修改传入的列表）

    - INSERT: 插到最前
    - UPDATE: 原位替换 id 相同的元素，找不到时不变
    - DELETE: 移除 id 相同的元素，找不到时不变
    """
    if isinstance(event, BookmarkInserted):
        return [event.record, *bookmarks]

    if isinstance(event, BookmarkUpdated):
        return [event.record if b.id == event.record.id else b for b in bookmarks]

    if isinstance(event, BookmarkDeleted):
        return [b for b in bookmarks if b.id != event.id]

    raise TypeError(f"未知的事件类型: {type(event).__name__}")

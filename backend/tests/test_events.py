"""变更事件解析与列表合并"""
import pytest

from smart_bookmarks.realtime import (
    BookmarkDeleted,
    BookmarkInserted,
    BookmarkUpdated,
    apply_event,
    parse_event,
)


def ids(bookmarks):
    return [b.id for b in bookmarks]


def test_insert_prepends(make_bookmark):
    b1, b2, b3 = make_bookmark("B1", 1), make_bookmark("B2", 2), make_bookmark("B3", 3)

    result = apply_event([b2, b1], BookmarkInserted(record=b3))

    assert ids(result) == ["B3", "B2", "B1"]


def test_insert_into_empty_list_without_load(make_bookmark):
    result = apply_event([], BookmarkInserted(record=make_bookmark("B1")))
    assert ids(result) == ["B1"]


def test_insert_does_not_resort(make_bookmark):
    # 先到达的较旧记录也会被放在最前（已知限制）
    newer, older = make_bookmark("NEW", 30), make_bookmark("OLD", 5)
    result = apply_event([newer], BookmarkInserted(record=older))
    assert ids(result) == ["OLD", "NEW"]


def test_update_replaces_in_place(make_bookmark):
    b1, b2 = make_bookmark("B1", 1), make_bookmark("B2", 2)
    b2_edited = b2.model_copy(update={"title": "Edited", "url": "https://edited.example.com"})

    result = apply_event([b1, b2], BookmarkUpdated(record=b2_edited))

    assert ids(result) == ["B1", "B2"]
    assert result[1].title == "Edited"
    assert result[0] is b1


def test_update_is_idempotent(make_bookmark):
    b1, b2 = make_bookmark("B1", 1), make_bookmark("B2", 2)
    event = BookmarkUpdated(record=b1.model_copy(update={"title": "Renamed"}))

    once = apply_event([b1, b2], event)
    twice = apply_event(once, event)

    assert once == twice


def test_update_unknown_id_is_noop(make_bookmark):
    b1 = make_bookmark("B1")
    result = apply_event([b1], BookmarkUpdated(record=make_bookmark("MISSING")))
    assert result == [b1]


def test_delete_removes_and_repeat_is_noop(make_bookmark):
    b1, b2 = make_bookmark("B1", 1), make_bookmark("B2", 2)
    event = BookmarkDeleted(id="B1")

    once = apply_event([b1, b2], event)
    twice = apply_event(once, event)

    assert ids(once) == ["B2"]
    assert ids(twice) == ["B2"]


def test_input_list_not_mutated(make_bookmark):
    original = [make_bookmark("B1")]
    apply_event(original, BookmarkDeleted(id="B1"))
    assert ids(original) == ["B1"]


def test_unknown_event_type_rejected(make_bookmark):
    with pytest.raises(TypeError):
        apply_event([make_bookmark("B1")], object())


def test_parse_event_roundtrip_from_wire(make_bookmark):
    record = make_bookmark("B1")
    wire = BookmarkInserted(record=record).model_dump_json()

    event = parse_event(wire)

    assert isinstance(event, BookmarkInserted)
    assert event.record == record


def test_parse_delete_from_dict():
    event = parse_event({"type": "DELETE", "id": "abc"})
    assert isinstance(event, BookmarkDeleted)
    assert event.id == "abc"


def test_parse_rejects_unknown_type():
    with pytest.raises(ValueError):
        parse_event({"type": "TRUNCATE"})

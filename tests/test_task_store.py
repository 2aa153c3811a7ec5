from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

import pytest

from errors import InvalidInterval, NotFound, StorageError, UnsupportedRule, ValidationError
from task_store import TaskStore

from .factories import make_task


def test_create_and_get(store: TaskStore) -> None:
    task_id = store.create(make_task(title="Buy milk", comment="2 bottles", repeat="d 3"))
    got = store.get(task_id)
    assert got.id == task_id
    assert (got.date, got.title, got.comment, got.repeat) == ("20240101", "Buy milk", "2 bottles", "d 3")
    assert got.created_at


def test_create_ignores_client_id(store: TaskStore) -> None:
    first = store.create(make_task(title="A"))
    second = store.create(make_task(id=999, title="B"))
    assert second != 999
    assert second > first


def test_title_length_bound(store: TaskStore) -> None:
    store.create(make_task(title="x" * 100))
    with pytest.raises(ValidationError):
        store.create(make_task(title="x" * 101))
    assert store.count() == 1


def test_comment_length_bound(store: TaskStore) -> None:
    store.create(make_task(comment="c" * 500))
    with pytest.raises(ValidationError):
        store.create(make_task(comment="c" * 501))


def test_empty_title_rejected(store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        store.create(make_task(title="   "))


@pytest.mark.parametrize("bad", ["", "2024-01-01", "20241301", "tomorrow"])
def test_bad_date_rejected(store: TaskStore, bad: str) -> None:
    with pytest.raises(ValidationError):
        store.create(make_task(date=bad))


def test_bad_rule_rejected_before_insert(store: TaskStore) -> None:
    with pytest.raises(InvalidInterval):
        store.create(make_task(repeat="d 401"))
    with pytest.raises(UnsupportedRule):
        store.create(make_task(repeat="w 1"))
    assert store.count() == 0


def test_get_missing(store: TaskStore) -> None:
    with pytest.raises(NotFound):
        store.get(42)


def test_list_is_ordered_and_bounded(store: TaskStore) -> None:
    for d in ("20240310", "20240101", "20240205", "20231231"):
        store.create(make_task(date=d, title=d))
    assert [t.date for t in store.list(10)] == ["20231231", "20240101", "20240205", "20240310"]
    assert [t.date for t in store.list(2)] == ["20231231", "20240101"]


def test_list_empty(store: TaskStore) -> None:
    assert store.list(50) == []


def test_get_by_date(store: TaskStore) -> None:
    store.create(make_task(date="20240105", title="one"))
    store.create(make_task(date="20240106", title="two"))
    store.create(make_task(date="20240105", title="three"))
    assert [t.title for t in store.get_by_date("20240105")] == ["one", "three"]
    assert store.get_by_date("20991231") == []


def test_search_title_or_comment(store: TaskStore) -> None:
    store.create(make_task(date="20240103", title="Call Mom"))
    store.create(make_task(date="20240102", title="Gym", comment="then call the plumber"))
    store.create(make_task(date="20240101", title="Read"))
    assert [t.title for t in store.search("call")] == ["Gym", "Call Mom"]
    assert store.search("nothing here") == []


def test_search_wildcards_are_literal(store: TaskStore) -> None:
    store.create(make_task(title="100% done"))
    store.create(make_task(title="1000 done"))
    assert [t.title for t in store.search("0%")] == ["100% done"]
    assert [t.title for t in store.search("_")] == []


def test_search_limit(store: TaskStore) -> None:
    for i in range(5):
        store.create(make_task(title=f"note {i}"))
    assert len(store.search("note", limit=3)) == 3


def test_search_case_sensitive(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "cs.db", search_case_sensitive=True)
    store.create(make_task(title="Call Mom"))
    assert store.search("call") == []
    assert [t.title for t in store.search("Call")] == ["Call Mom"]


def test_update_replaces_fields(store: TaskStore) -> None:
    task_id = store.create(make_task(title="Old", comment="old", repeat="y"))
    created_at = store.get(task_id).created_at
    store.update(make_task(id=task_id, date="20250101", title="New", comment="", repeat=""))
    got = store.get(task_id)
    assert (got.date, got.title, got.comment, got.repeat) == ("20250101", "New", "", "")
    assert got.created_at == created_at


def test_update_missing_raises(store: TaskStore) -> None:
    with pytest.raises(NotFound):
        store.update(make_task(id=12345))


def test_update_validates(store: TaskStore) -> None:
    task_id = store.create(make_task())
    with pytest.raises(ValidationError):
        store.update(make_task(id=task_id, title="t" * 101))
    assert store.get(task_id).title == "Task"


def test_delete_is_idempotent(store: TaskStore) -> None:
    task_id = store.create(make_task())
    assert store.delete(task_id) is True
    assert store.delete(task_id) is False
    assert store.delete(999) is False
    with pytest.raises(NotFound):
        store.get(task_id)


def test_concurrent_updates_same_id(store: TaskStore) -> None:
    task_id = store.create(make_task())
    titles = [f"writer {i}" for i in range(8)]
    errors: list[BaseException] = []

    def write(title: str) -> None:
        try:
            for _ in range(10):
                store.update(make_task(id=task_id, title=title))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=write, args=(t,)) for t in titles]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.get(task_id).title in titles
    assert store.count() == 1


def test_read_your_writes_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "shared.db"
    writer = TaskStore(path)
    task_id = writer.create(make_task(title="shared"))
    assert TaskStore(path).get(task_id).title == "shared"


def test_storage_failure_is_surfaced(store: TaskStore) -> None:
    task_id = store.create(make_task())
    conn = sqlite3.connect(str(store.db_path))
    conn.execute("DROP TABLE scheduler")
    conn.commit()
    conn.close()

    with pytest.raises(StorageError):
        store.get(task_id)
    with pytest.raises(StorageError):
        store.create(make_task())
    with pytest.raises(StorageError):
        store.list(10)


def test_update_date_keeps_other_fields(store: TaskStore) -> None:
    task_id = store.create(make_task(title="Water plants", comment="balcony", repeat="d 3"))
    got = store.update_date(task_id, "20240104")
    assert (got.date, got.title, got.comment, got.repeat) == ("20240104", "Water plants", "balcony", "d 3")
    assert store.get(task_id).date == "20240104"
    with pytest.raises(NotFound):
        store.update_date(999, "20240104")
    with pytest.raises(ValidationError):
        store.update_date(task_id, "04.01.2024")


def test_delete_one_off_skips_recurring(store: TaskStore) -> None:
    one_off = store.create(make_task())
    weekly = store.create(make_task(repeat="d 7"))
    assert store.delete_one_off(one_off) is True
    assert store.delete_one_off(weekly) is False
    assert store.get(weekly).repeat == "d 7"
    assert store.delete_one_off(999) is False

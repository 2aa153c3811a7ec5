"""
Task store: sole owner of persisted task state.
Every read and write to the scheduler table goes through TaskStore.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from database import get_connection, init_database
from date_utils import parse_date
from errors import NotFound, StorageError, ValidationError
from models import MAX_COMMENT_LENGTH, MAX_TITLE_LENGTH, Task
from nextdate import validate_rule

logger = logging.getLogger("task_store")

_COLUMNS = "id, date, title, comment, repeat, created_at"


def _now_local() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _like_escape(text: str) -> str:
    """Escape LIKE wildcards so the search text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def validate_task(task: Task) -> Task:
    """
    Check field bounds, date syntax, and rule syntax. Returns a normalized copy.
    Raises ValidationError, or InvalidRule for a rule the parser rejects.
    """
    title = task.title or ""
    comment = task.comment or ""
    repeat = (task.repeat or "").strip()
    if not title.strip():
        raise ValidationError("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title is too long (max {MAX_TITLE_LENGTH} characters)")
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment is too long (max {MAX_COMMENT_LENGTH} characters)")
    parse_date(task.date)
    if repeat:
        validate_rule(repeat)
    return task.model_copy(update={"title": title, "comment": comment, "repeat": repeat, "date": task.date.strip()})


class TaskStore:
    """
    SQLite task store.

    Thread-safety:
    - one lock per store, held for the full duration of every operation (reads included)
    - each operation opens its own connection and commits before the lock is released
    """

    def __init__(self, db_path: str | Path, *, search_case_sensitive: bool = False) -> None:
        self._db_path = init_database(Path(db_path))
        self._lock = threading.Lock()
        self.search_case_sensitive = search_case_sensitive
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count())

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Shutdown hook (no persistent connections to close)."""
        logger.info("TaskStore closed db=%s", self._db_path)

    @contextmanager
    def _connection(self, op: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                conn = get_connection(self._db_path)
            except sqlite3.Error as e:
                logger.exception("TaskStore %s: cannot open %s", op, self._db_path)
                raise StorageError(f"{op} failed: {e}") from e
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                logger.exception("TaskStore %s failed", op)
                raise StorageError(f"{op} failed: {e}") from e
            finally:
                conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            date=str(row["date"]),
            title=str(row["title"]),
            comment=str(row["comment"] or ""),
            repeat=str(row["repeat"] or ""),
            created_at=str(row["created_at"] or ""),
        )

    # ---- public API ----

    def count(self) -> int:
        with self._connection("count") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM scheduler").fetchone()
            return int(n)

    def create(self, task: Task) -> int:
        """Insert a new task and return its id. Any id already on `task` is ignored."""
        clean = validate_task(task)
        with self._connection("create") as conn:
            cur = conn.execute(
                "INSERT INTO scheduler (date, title, comment, repeat, created_at) VALUES (?, ?, ?, ?, ?)",
                (clean.date, clean.title, clean.comment, clean.repeat, _now_local()),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise StorageError("SQLite did not return lastrowid for task insert")
        logger.info("Task created id=%s date=%s repeat=%r", rowid, clean.date, clean.repeat)
        return int(rowid)

    def get(self, task_id: int) -> Task:
        with self._connection("get") as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM scheduler WHERE id = ?", (int(task_id),)).fetchone()
        if row is None:
            raise NotFound(task_id)
        return self._row_to_task(row)

    def get_by_date(self, date: str) -> list[Task]:
        """Tasks due on the given YYYYMMDD date."""
        with self._connection("get_by_date") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM scheduler WHERE date = ? ORDER BY date ASC, id ASC",
                (date,),
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    def list(self, limit: int) -> list[Task]:
        """Up to `limit` tasks, earliest due date first."""
        with self._connection("list") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM scheduler ORDER BY date ASC, id ASC LIMIT ?",
                (int(limit),),
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    def search(self, pattern: str, limit: int | None = None) -> list[Task]:
        """Tasks whose title or comment contains `pattern`, earliest due date first."""
        if self.search_case_sensitive:
            where = "instr(title, ?) > 0 OR instr(comment, ?) > 0"
            params: list[object] = [pattern, pattern]
        else:
            where = "title LIKE ? ESCAPE '\\' OR comment LIKE ? ESCAPE '\\'"
            like = f"%{_like_escape(pattern)}%"
            params = [like, like]
        sql = f"SELECT {_COLUMNS} FROM scheduler WHERE {where} ORDER BY date ASC, id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self._connection("search") as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_task(r) for r in rows]

    def update(self, task: Task) -> None:
        """Replace title, date, comment, and repeat of an existing task. Raises NotFound if the id is unknown."""
        if task.id is None:
            raise ValidationError("Task id is required for update")
        clean = validate_task(task)
        with self._connection("update") as conn:
            cur = conn.execute(
                "UPDATE scheduler SET title = ?, date = ?, comment = ?, repeat = ? WHERE id = ?",
                (clean.title, clean.date, clean.comment, clean.repeat, int(clean.id)),
            )
            updated = cur.rowcount
        if updated == 0:
            raise NotFound(clean.id)
        logger.info("Task updated id=%s date=%s repeat=%r", clean.id, clean.date, clean.repeat)

    def update_date(self, task_id: int, date: str) -> Task:
        """Move a task to a new due date, leaving its other fields as stored. Returns the updated task."""
        parse_date(date)
        with self._connection("update_date") as conn:
            conn.execute("UPDATE scheduler SET date = ? WHERE id = ?", (date, int(task_id)))
            row = conn.execute(f"SELECT {_COLUMNS} FROM scheduler WHERE id = ?", (int(task_id),)).fetchone()
        if row is None:
            raise NotFound(task_id)
        logger.info("Task date moved id=%s date=%s", task_id, date)
        return self._row_to_task(row)

    def delete_one_off(self, task_id: int) -> bool:
        """Delete the task only if it has no repeat rule. Returns True if a row was removed."""
        with self._connection("delete_one_off") as conn:
            cur = conn.execute(
                "DELETE FROM scheduler WHERE id = ? AND COALESCE(TRIM(repeat), '') = ''",
                (int(task_id),),
            )
            deleted = cur.rowcount > 0
        logger.debug("Task delete_one_off id=%s deleted=%s", task_id, deleted)
        return deleted

    def delete(self, task_id: int) -> bool:
        """Delete a task. Returns True if a row was removed; a missing id is not an error."""
        with self._connection("delete") as conn:
            cur = conn.execute("DELETE FROM scheduler WHERE id = ?", (int(task_id),))
            deleted = cur.rowcount > 0
        logger.debug("Task delete id=%s deleted=%s", task_id, deleted)
        return deleted

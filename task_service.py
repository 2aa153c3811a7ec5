"""
Task Service layer: task lifecycle on top of TaskStore.
Completion deletes one-off tasks and rolls recurring tasks to their next due date.
Used by the API; the store is injected, never looked up globally.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

import date_utils
from errors import InvalidRule, RecurrenceError
from models import Task
from nextdate import next_date
from task_store import TaskStore

logger = logging.getLogger("task_service")

DEFAULT_LIST_LIMIT = 50


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        *,
        list_limit: int = DEFAULT_LIST_LIMIT,
        today: Callable[[], date] = date_utils.today,
    ) -> None:
        self.store = store
        self.list_limit = list_limit
        self._today = today

    def today(self) -> date:
        return self._today()

    # ---- pass-throughs used by the API ----

    def create(self, task: Task) -> int:
        return self.store.create(task)

    def get(self, task_id: int) -> Task:
        return self.store.get(task_id)

    def update(self, task: Task) -> None:
        self.store.update(task)

    def delete(self, task_id: int) -> bool:
        return self.store.delete(task_id)

    def next_date(self, now: date, task_date: str, repeat: str) -> str:
        return next_date(now, task_date, repeat)

    def resolve_due_date(self, task: Task) -> Task:
        """
        Fill in the due date for a task coming from a client.
        Empty date means today. A past date becomes today (one-off) or the next occurrence after today (recurring).
        """
        today = self.today()
        raw = (task.date or "").strip()
        if not raw:
            return task.model_copy(update={"date": date_utils.format_date(today)})
        due = date_utils.parse_date(raw)
        if due >= today:
            return task.model_copy(update={"date": raw})
        if task.is_recurring:
            return task.model_copy(update={"date": next_date(today, due, task.repeat)})
        return task.model_copy(update={"date": date_utils.format_date(today)})

    # ---- lifecycle ----

    def complete(self, task_id: int, now: date | None = None) -> Task | None:
        """
        Mark a task done.
        One-off: the task is deleted and None is returned.
        Recurring: the date moves to the next occurrence after `now` (default today) and the updated task is returned.
        Raises NotFound for an unknown id, RecurrenceError if the stored rule cannot be advanced.
        """
        task = self.store.get(task_id)
        if not task.is_recurring:
            if self.store.delete_one_off(task_id):
                logger.info("Task %s completed (one-off, deleted)", task_id)
                return None
            # Made recurring by a concurrent update; advance it instead
            task = self.store.get(task_id)

        ref = now or self.today()
        try:
            new_date = next_date(ref, task.date, task.repeat)
        except InvalidRule as e:
            raise RecurrenceError(f"Task {task_id} has an invalid repeat rule {task.repeat!r}: {e}") from e
        # A stored date with bad syntax also blocks completion
        except ValueError as e:
            raise RecurrenceError(f"Task {task_id} cannot be advanced: {e}") from e

        # Only the date is written so a concurrent edit of title/comment/repeat is kept
        updated = self.store.update_date(task_id, new_date)
        logger.info("Task %s completed (repeat %r): %s -> %s", task_id, task.repeat, task.date, new_date)
        return updated

    def search(self, text: str | None = "") -> list[Task]:
        """
        Listing entry point.
        Empty text: default bounded listing. DD.MM.YYYY: tasks due that day. Anything else: every title/comment substring match.
        """
        query = (text or "").strip()
        if not query:
            return self.store.list(self.list_limit)
        day = date_utils.human_to_canonical(query)
        if day is not None:
            return self.store.get_by_date(day)
        return self.store.search(query)

"""
Failure taxonomy for the scheduler core.
The transport layer maps each class to a status code; the core only classifies.
"""
from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every failure raised by the scheduler core."""


class ValidationError(SchedulerError, ValueError):
    """A task field is out of bounds or has bad syntax (title/comment length, date format)."""


class InvalidRule(SchedulerError, ValueError):
    """Repeat rule is empty or malformed."""


class InvalidInterval(InvalidRule):
    """Day interval of a 'd N' rule is not an integer in 1..400."""


class UnsupportedRule(InvalidRule):
    """First token of the repeat rule is not a known rule kind."""


class NotFound(SchedulerError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class RecurrenceError(SchedulerError, RuntimeError):
    """Stored rule could not be advanced at completion time."""


class StorageError(SchedulerError, RuntimeError):
    """Underlying SQLite operation failed."""

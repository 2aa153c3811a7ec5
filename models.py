"""Task record shared by the store, the lifecycle service, and the API."""
from __future__ import annotations

from pydantic import BaseModel, Field

MAX_TITLE_LENGTH = 100
MAX_COMMENT_LENGTH = 500


class Task(BaseModel):
    """
    One reminder. `date` is the next due date as YYYYMMDD.
    `repeat` empty = one-off task (deleted on completion); otherwise a rule like "d 7" or "y".
    Field bounds are enforced by TaskStore, not here, so callers get errors.ValidationError.
    """

    id: int | None = Field(default=None, description="Assigned by the store; ignored on create")
    date: str = ""
    title: str = ""
    comment: str = ""
    repeat: str = ""
    created_at: str = ""

    @property
    def is_recurring(self) -> bool:
        return bool(self.repeat.strip())

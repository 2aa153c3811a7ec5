"""HTTP API for the reminder scheduler. Parses requests, calls TaskService, renders results."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from config import AppConfig
from date_utils import parse_date
from errors import (
    InvalidRule,
    NotFound,
    RecurrenceError,
    SchedulerError,
    StorageError,
    ValidationError,
)
from models import Task
from task_service import TaskService

logger = logging.getLogger("scheduler.api")

# Most specific first: InvalidRule subclasses share one code
_STATUS_BY_ERROR: list[tuple[type[SchedulerError], int]] = [
    (ValidationError, 400),
    (InvalidRule, 400),
    (NotFound, 404),
    (RecurrenceError, 500),
    (StorageError, 500),
]


def status_for(exc: SchedulerError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


# --- API schemas ---


class TaskBody(BaseModel):
    # Web clients send the id as a string
    id: int | str | None = None
    date: str = ""
    title: str = ""
    comment: str = ""
    repeat: str = ""


def _parse_id(raw: int | str | None) -> int:
    if raw is None or str(raw).strip() == "":
        raise ValidationError("Task id is required")
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise ValidationError(f"Invalid task id: {raw!r}") from e


def _task_to_wire(task: Task) -> dict[str, str]:
    return {
        "id": str(task.id),
        "date": task.date,
        "title": task.title,
        "comment": task.comment,
        "repeat": task.repeat,
    }


def create_app(service: TaskService, config: AppConfig | None = None) -> FastAPI:
    """Build the API around an already constructed TaskService."""
    cfg = config or AppConfig()
    app = FastAPI(title="Reminder Scheduler", version="1.0")
    app.state.service = service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """When config.debug is True, log API request method and path."""
        if cfg.debug:
            qs = request.url.query
            logger.warning("[API] %s %s%s", request.method, request.url.path, "?" + qs if qs else "")
        response = await call_next(request)
        if cfg.debug:
            logger.warning("[API] %s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(SchedulerError)
    async def scheduler_error(request: Request, exc: SchedulerError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.warning("[API] %s %s rejected (%s): %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=status, content={"error": str(exc)})

    # --- API routes ---

    @app.get("/api/nextdate", response_class=PlainTextResponse)
    def api_next_date(now: str = "", date: str = "", repeat: str = "") -> str:
        return service.next_date(parse_date(now), date, repeat)

    @app.post("/api/task", status_code=201)
    def api_create_task(body: TaskBody) -> dict[str, int]:
        task = service.resolve_due_date(
            Task(date=body.date, title=body.title, comment=body.comment, repeat=body.repeat)
        )
        return {"id": service.create(task)}

    @app.get("/api/task")
    def api_get_task(id: str | None = None) -> dict[str, str]:
        return _task_to_wire(service.get(_parse_id(id)))

    @app.put("/api/task")
    def api_update_task(body: TaskBody) -> dict:
        task = Task(id=_parse_id(body.id), date=body.date, title=body.title, comment=body.comment, repeat=body.repeat)
        service.update(service.resolve_due_date(task))
        return {}

    @app.delete("/api/task")
    def api_delete_task(id: str | None = None) -> dict:
        service.delete(_parse_id(id))
        return {}

    @app.get("/api/tasks")
    def api_list_tasks(search: str = "") -> dict[str, list[dict[str, str]]]:
        return {"tasks": [_task_to_wire(t) for t in service.search(search)]}

    @app.post("/api/task/done")
    def api_task_done(id: str | None = None) -> dict:
        service.complete(_parse_id(id))
        return {}

    return app

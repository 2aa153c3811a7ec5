from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from task_service import TaskService
from task_store import TaskStore
from web_app import create_app

from .factories import TODAY


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    """Real SQLite store in a per-test temp directory."""
    return TaskStore(tmp_path / "scheduler.db")


@pytest.fixture()
def service(store: TaskStore) -> TaskService:
    """Service with a fixed clock so completion dates are deterministic."""
    return TaskService(store, list_limit=50, today=lambda: TODAY)


@pytest.fixture()
def client(service: TaskService) -> TestClient:
    return TestClient(create_app(service))

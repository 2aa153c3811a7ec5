"""Configuration load/save for the reminder scheduler."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

CONFIG_PATH = Path(__file__).resolve().parent / "config.json"

# Environment overrides applied on load: env var -> config field
_ENV_OVERRIDES = {
    "TODO_PORT": "web_ui_port",
    "TODO_DBFILE": "database_path",
}


class AppConfig(BaseModel):
    """Persisted application configuration."""

    database_path: str = Field(default="", description="Path to SQLite database file; empty = project dir / scheduler.db")
    web_ui_port: int = Field(default=7540, ge=1, le=65535, description="Port for the HTTP API")
    list_limit: int = Field(default=50, ge=1, le=1000, description="Maximum tasks returned by a listing or text search")
    search_case_sensitive: bool = Field(default=False, description="Match search text case-sensitively")
    debug: bool = Field(default=False, description="Log every API request and response status")

    def to_save_dict(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        path = path or CONFIG_PATH
        raw: dict[str, Any] = {}
        if path.exists():
            raw = json.loads(path.read_text())
        for env_name, field in _ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                raw[field] = value
        return cls.model_validate(raw)

    def save(self, path: Path | None = None) -> None:
        (path or CONFIG_PATH).write_text(json.dumps(self.to_save_dict(), indent=2))


def load() -> AppConfig:
    """Load config from disk. Convenience alias for AppConfig.load()."""
    return AppConfig.load()

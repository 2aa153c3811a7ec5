#!/usr/bin/env python3
"""
Main entrypoint: open the task store and serve the HTTP API.
Run with: python run.py
Initialize the database only: python database.py
"""
from __future__ import annotations

import logging
import sys

import uvicorn

from config import load as load_config
from database import get_db_path
from task_service import TaskService
from task_store import TaskStore
from web_app import create_app

logger = logging.getLogger("scheduler")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )
    config = load_config()
    store = TaskStore(get_db_path(config.database_path), search_case_sensitive=config.search_case_sensitive)
    service = TaskService(store, list_limit=config.list_limit)
    app = create_app(service, config)
    logger.info("Starting server on port %s", config.web_ui_port)
    try:
        uvicorn.run(app, host="0.0.0.0", port=config.web_ui_port, reload=False)
    finally:
        store.close()


if __name__ == "__main__":
    main()

"""
SQLite database initialization and connection for the reminder scheduler.
Self-bootstrapping: creates DB file, table, and index on first run.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

# Default DB path: project directory
_DEFAULT_DB_PATH = Path(__file__).resolve().parent / "scheduler.db"

# Wait up to this many seconds for locks (several worker threads share the file)
_CONNECT_TIMEOUT = 30.0

_SCHEMA = """
-- date: YYYYMMDD, so lexicographic order is chronological order
-- repeat: '' for one-off tasks, otherwise a rule such as 'd 7' or 'y'
CREATE TABLE IF NOT EXISTS scheduler (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    title TEXT NOT NULL,
    comment TEXT,
    repeat TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_scheduler_date ON scheduler(date);
"""


def get_db_path(configured: str | None = None) -> Path:
    """Return the database file path: the configured one if set, else the project default."""
    if configured:
        return Path(configured).expanduser()
    return _DEFAULT_DB_PATH


def init_database(path: Path | None = None) -> Path:
    """
    Ensure the database exists and is initialized. Creates file, table, and index.
    Returns the resolved path to the database file.
    """
    db_path = (path or get_db_path()).resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=_CONNECT_TIMEOUT)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(_SCHEMA)
        conn.commit()
    finally:
        conn.close()
    return db_path


def get_connection(path: Path) -> sqlite3.Connection:
    """Return a connection to an initialized database, with rows addressable by column name."""
    conn = sqlite3.connect(str(path), timeout=_CONNECT_TIMEOUT)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    return conn


if __name__ == "__main__":
    from config import load as load_config

    p = init_database(get_db_path(load_config().database_path))
    print("Database initialized:", p)

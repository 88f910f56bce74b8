"""Database initialization and named storage slots."""
import json
import sqlite3
from pathlib import Path
from typing import Any

from sat_prep.config import DEFAULT_DB_PATH

USER_KEY = "sat-prep-user"
PLACEMENT_QUIZ_KEY = "sat-prep-placement-quiz-taken"
ERROR_LOG_KEY = "sat-prep-error-log"
TEST_HISTORY_KEY = "sat-prep-test-history"
FLASHCARD_HISTORY_KEY = "sat-prep-flashcard-history"
PROFILE_KEY = "sat-prep-user-profile"
EXAM_DATE_KEY = "satDate"

SCHEMA = """
CREATE TABLE IF NOT EXISTS storage (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the storage table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_item(db_path: str, key: str) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM storage WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else None


def set_item(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO storage (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=CURRENT_TIMESTAMP""",
        (key, value),
    )
    conn.commit()
    conn.close()


def get_json(db_path: str, key: str, default: Any = None) -> Any:
    raw = get_item(db_path, key)
    if raw is None:
        return default
    return json.loads(raw)


def set_json(db_path: str, key: str, value: Any) -> None:
    set_item(db_path, key, json.dumps(value))


def clear_storage(db_path: str) -> None:
    """Delete every slot."""
    conn = get_connection(db_path)
    conn.execute("DELETE FROM storage")
    conn.commit()
    conn.close()

import os
import sqlite3
from abc import ABC, abstractmethod
from typing import Optional

from .config import settings


def get_db_connection(db_path: Optional[str] = None):
    """Establishes a connection to the SQLite database."""
    if db_path is None:
        db_path = os.path.join(settings.DB_DIR, settings.DB_FILE)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def create_log_table(db_path: Optional[str] = None):
    """Creates the log table if it doesn't exist."""
    conn = get_db_connection(db_path)
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                message TEXT
            );
        """
        )
    conn.close()


def create_storage_table(db_path: Optional[str] = None):
    """Creates the key-value table backing local storage."""
    conn = get_db_connection(db_path)
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS storage (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """
        )
    conn.close()


def init_db(db_path: Optional[str] = None):
    """Initializes the database and creates necessary tables."""
    if db_path is None and not os.path.exists(settings.DB_DIR):
        os.makedirs(settings.DB_DIR)
    create_log_table(db_path)
    create_storage_table(db_path)


class Storage(ABC):
    """Durable key-value slots holding string values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class SQLiteStorage(Storage):
    """Storage slots kept in the `storage` table.

    With no explicit path the database configured in settings is used,
    resolved on every call.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def get(self, key: str) -> Optional[str]:
        conn = get_db_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT value FROM storage WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        conn = get_db_connection(self.db_path)
        try:
            with conn:
                conn.execute(
                    "INSERT INTO storage (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = get_db_connection(self.db_path)
        try:
            with conn:
                conn.execute("DELETE FROM storage WHERE key = ?", (key,))
        finally:
            conn.close()

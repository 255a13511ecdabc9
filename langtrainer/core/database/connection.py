"""
Database connection manager for persisted learner state
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages SQLite connections for the namespaced state store.

    Every namespace holds one JSON document that is read and written as a
    whole. A new connection is opened per operation, so ``:memory:`` does
    not keep data between calls; use ``InMemoryBackend`` for that.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or get_database_path()
        self._ensure_database_directory()

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        if self.db_path == ":memory:":
            return
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA busy_timeout=30000")
            yield conn
            conn.commit()
        except Exception as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS state_entries (
                    namespace TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        logger.info(f"Database initialized at {self.db_path}")

    def read_value(self, namespace: str) -> str | None:
        """Return the raw stored document for a namespace, if any"""
        try:
            with self.get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM state_entries WHERE namespace = ?",
                    (namespace,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Could not read namespace '{namespace}': {e}")
            return None
        return row["value"] if row else None

    def write_value(self, namespace: str, value: str) -> None:
        """Replace the stored document for a namespace"""
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO state_entries (namespace, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(namespace) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (namespace, value, datetime.now().isoformat()),
            )

    def list_namespaces(self) -> list[str]:
        """Return every stored namespace"""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT namespace FROM state_entries ORDER BY namespace"
            ).fetchall()
        return [row["namespace"] for row in rows]


class InMemoryBackend:
    """Dictionary-backed stand-in for DatabaseConnection"""

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    def init_database(self) -> None:
        pass

    def read_value(self, namespace: str) -> str | None:
        return self.values.get(namespace)

    def write_value(self, namespace: str, value: str) -> None:
        self.values[namespace] = value

    def list_namespaces(self) -> list[str]:
        return sorted(self.values)

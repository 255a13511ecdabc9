"""
Unified database manager that coordinates all repositories
"""

import logging

from .connection import DatabaseConnection, InMemoryBackend
from .repositories.course_progress_repository import CourseProgressRepository
from .repositories.experience_repository import ExperienceRepository
from .repositories.review_state_repository import ReviewStateRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories.

    Each repository reads its namespace whole, mutates in memory and writes
    it back whole. There is no locking: one active session per store is
    assumed, and concurrent writers overwrite each other (last write wins).
    """

    def __init__(self, db_path: str | None = None, backend: InMemoryBackend | None = None):
        self.db_connection = backend if backend is not None else DatabaseConnection(db_path)
        self.review_repo = ReviewStateRepository(self.db_connection)
        self.experience_repo = ExperienceRepository(self.db_connection)
        self.course_repo = CourseProgressRepository(self.db_connection)

    @classmethod
    def in_memory(cls) -> "DatabaseManager":
        """Manager backed by a plain dictionary, for tests and dry runs"""
        return cls(backend=InMemoryBackend())

    def init_database(self) -> None:
        """Initialize database tables"""
        self.db_connection.init_database()

    def get_experience(self) -> int:
        return self.experience_repo.load()

    def add_experience(self, points: int) -> int:
        return self.experience_repo.add(points)

    def export_state(self) -> dict[str, str]:
        """Raw stored documents keyed by namespace"""
        return {
            namespace: self.db_connection.read_value(namespace) or ""
            for namespace in self.db_connection.list_namespaces()
        }

    def import_state(self, documents: dict[str, str]) -> int:
        """Write raw documents back; returns the number of namespaces written"""
        for namespace, value in documents.items():
            self.db_connection.write_value(namespace, value)
        logger.info(f"Imported {len(documents)} namespaces")
        return len(documents)


# Global instance
_db_manager = None


def get_db_manager(db_path: str | None = None) -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_path)
        _db_manager.init_database()
    return _db_manager

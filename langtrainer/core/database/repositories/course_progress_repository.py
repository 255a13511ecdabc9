"""
Course progress repository: per-lesson completion, stars and lock flags
"""

import json
import logging
from typing import Any

from ..connection import DatabaseConnection, InMemoryBackend

logger = logging.getLogger(__name__)

COURSE_NAMESPACE = "course_progress"


class CourseProgressRepository:
    """Loads and saves the lesson id -> progress snapshot"""

    def __init__(
        self,
        db_connection: DatabaseConnection | InMemoryBackend,
        namespace: str = COURSE_NAMESPACE,
    ):
        self.db_connection = db_connection
        self.namespace = namespace

    def load(self) -> dict[str, dict[str, Any]]:
        """Return the stored snapshot; unreadable data counts as empty"""
        raw = self.db_connection.read_value(self.namespace)
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored course progress is not valid JSON: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning("Stored course progress is not a mapping")
            return {}
        return {
            str(lesson_id): entry for lesson_id, entry in data.items() if isinstance(entry, dict)
        }

    def save(self, snapshot: dict[str, dict[str, Any]]) -> None:
        self.db_connection.write_value(self.namespace, json.dumps(snapshot, ensure_ascii=False))
        logger.debug(f"Saved progress for {len(snapshot)} lessons")

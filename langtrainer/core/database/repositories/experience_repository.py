"""
Experience repository: the cumulative XP counter
"""

import json
import logging

from ..connection import DatabaseConnection, InMemoryBackend

logger = logging.getLogger(__name__)

XP_NAMESPACE = "xp"


class ExperienceRepository:
    """Loads, saves and increments the experience counter"""

    def __init__(
        self,
        db_connection: DatabaseConnection | InMemoryBackend,
        namespace: str = XP_NAMESPACE,
    ):
        self.db_connection = db_connection
        self.namespace = namespace

    def load(self) -> int:
        """Return the stored counter; unreadable data counts as zero"""
        raw = self.db_connection.read_value(self.namespace)
        if raw is None:
            return 0
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Stored experience counter is unreadable: {raw!r}")
            return 0
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning(f"Stored experience counter is invalid: {raw!r}")
            return 0
        return value

    def save(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Experience cannot be negative, got {value}")
        self.db_connection.write_value(self.namespace, json.dumps(value))

    def add(self, points: int) -> int:
        """Add points and return the new total"""
        total = self.load() + max(0, points)
        self.save(total)
        logger.info(f"Experience increased by {points} to {total}")
        return total

"""
Review state repository: the persisted headword -> review record mapping
"""

import json
import logging

from ....spaced_repetition import ReviewRecord
from ..connection import DatabaseConnection, InMemoryBackend

logger = logging.getLogger(__name__)

SRS_NAMESPACE = "srs_data"


class ReviewStateRepository:
    """Loads and saves the whole review-state mapping"""

    def __init__(
        self,
        db_connection: DatabaseConnection | InMemoryBackend,
        namespace: str = SRS_NAMESPACE,
    ):
        self.db_connection = db_connection
        self.namespace = namespace

    def load(self) -> dict[str, ReviewRecord]:
        """Return every stored record; unreadable data counts as empty"""
        raw = self.db_connection.read_value(self.namespace)
        if raw is None:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored review state is not valid JSON, starting empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning("Stored review state is not a mapping, starting empty")
            return {}

        records: dict[str, ReviewRecord] = {}
        for headword, item in data.items():
            try:
                records[headword] = ReviewRecord.from_dict(item)
            except ValueError as e:
                logger.warning(f"Skipping unreadable review record for '{headword}': {e}")
        return records

    def save(self, records: dict[str, ReviewRecord]) -> None:
        """Replace the stored mapping with records"""
        payload = {headword: record.to_dict() for headword, record in records.items()}
        self.db_connection.write_value(self.namespace, json.dumps(payload, ensure_ascii=False))
        logger.debug(f"Saved {len(payload)} review records")

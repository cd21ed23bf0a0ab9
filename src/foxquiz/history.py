import json
import logging
from typing import List, Tuple

import pandas as pd
from pydantic import TypeAdapter, ValidationError

from .config import settings
from .database import Storage
from .models import AttemptRecord, HistoryDocument

logger = logging.getLogger(__name__)

_legacy_adapter = TypeAdapter(List[AttemptRecord])


class HistoryStore:
    """Owns the durable, most-recent-first list of quiz attempts."""

    def __init__(self, storage: Storage, key: str = settings.HISTORY_KEY):
        self.storage = storage
        self.key = key

    def load_all(self) -> List[AttemptRecord]:
        """Returns the stored history, or an empty list if it is missing or unreadable."""
        return self._read()[0]

    def _read(self) -> Tuple[List[AttemptRecord], bool]:
        """Returns the stored records and whether unreadable content was discarded."""
        raw = self.storage.get(self.key)
        if raw is None:
            return [], False

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding malformed history in '{self.key}': {e}")
            return [], True

        try:
            # Unversioned lists were written by earlier releases.
            if isinstance(data, list):
                return _legacy_adapter.validate_python(data), False
            document = HistoryDocument.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding history with unexpected shape in '{self.key}': {e}")
            return [], True

        if document.version != settings.HISTORY_SCHEMA_VERSION:
            logger.warning(
                f"Discarding history with unsupported version {document.version}"
            )
            return [], True
        return document.attempts, False

    def append(self, record: AttemptRecord) -> List[AttemptRecord]:
        previous, discarded = self._read()
        if discarded:
            logger.warning(f"Overwriting unreadable history in '{self.key}'")
        history = [record] + previous
        self._write(history)
        logger.info(
            f"Recorded attempt by {record.username}: {record.score}/{record.total_questions}"
        )
        return history

    def clear(self):
        self.storage.remove(self.key)
        logger.info("History cleared")

    def to_frame(self) -> pd.DataFrame:
        """History as a table for the admin view, newest first."""
        columns = ["username", "topic", "score", "totalQuestions", "grade", "timestamp", "date"]
        history = self.load_all()
        if not history:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame([record.model_dump(by_alias=True) for record in history])
        df["grade"] = [record.grade for record in history]
        df["date"] = pd.to_datetime(df["timestamp"], unit="ms").dt.strftime("%Y-%m-%d %H:%M:%S")
        return df[columns]

    def _write(self, history: List[AttemptRecord]):
        document = HistoryDocument(
            version=settings.HISTORY_SCHEMA_VERSION, attempts=history
        )
        self.storage.set(self.key, document.model_dump_json(by_alias=True))

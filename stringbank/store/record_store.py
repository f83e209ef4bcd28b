"""In-memory, content-addressed store of analysis records.

Records are keyed by the SHA-256 of their value, so the store is a set of
distinct strings rather than a log: inserting a value that is already
present is a conflict, and the first writer wins until the value is deleted.

Nothing is persisted; the store lives as long as the object that owns it.
"""

from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List

from stringbank.analysis import analyze, content_address
from stringbank.exceptions import RecordConflictError, RecordNotFoundError
from stringbank.schemas import AnalysisRecord
from stringbank.utils.logger import LoggerManager


class RecordStore:
    """Thread-safe mapping of content address → AnalysisRecord.

    A single lock serializes inserts and deletes (each check-then-write
    sequence runs while holding it) and `list_all` copies under the same
    lock, so a listing never sees a half-applied mutation.

    Attributes:
        _records: id → record, in insertion order of the live records
        _lock: guards _records
    """

    def __init__(self):
        self._records: Dict[str, AnalysisRecord] = {}
        self._lock = RLock()
        self.logger = LoggerManager.get_logger(__name__)

    def insert(self, value: str) -> AnalysisRecord:
        """Analyze and store a value.

        Args:
            value: Raw string to store

        Returns:
            The newly created AnalysisRecord

        Raises:
            RecordConflictError: If the value is already stored. The store
                is left unchanged and the error carries the existing id.
        """
        properties = analyze(value)
        record_id = properties.sha256_hash

        with self._lock:
            if record_id in self._records:
                self.logger.info(
                    "Insert rejected, value already stored",
                    extra={"extra_data": {"record_id": record_id}},
                )
                raise RecordConflictError(record_id)

            record = AnalysisRecord(
                id=record_id,
                value=value,
                properties=properties,
                created_at=datetime.now(timezone.utc),
            )
            self._records[record_id] = record

        self.logger.info(
            "Stored record",
            extra={"extra_data": {"record_id": record_id, "length": properties.length}},
        )
        return record

    def get(self, record_id: str) -> AnalysisRecord:
        """Fetch a record by content address.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def delete_by_value(self, value: str) -> None:
        """Remove the record for a value.

        The id is recomputed from the value, so deleting the same string
        twice fails the second time.

        Args:
            value: Raw (already decoded) string

        Raises:
            RecordNotFoundError: If the value is not stored
        """
        record_id = content_address(value)
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFoundError(record_id)
            del self._records[record_id]

        self.logger.info("Deleted record", extra={"extra_data": {"record_id": record_id}})

    def list_all(self) -> List[AnalysisRecord]:
        """Snapshot of every stored record, in insertion order."""
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

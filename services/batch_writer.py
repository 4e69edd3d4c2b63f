"""
Batched Firestore writes with automatic commits.

A WriteBatch cannot be reused once committed, so the writer opens a fresh
batch after every commit. Records, not writes, are counted: the caller
says how many writes each record stages and the threshold comes from
MigrationSettings.records_per_batch().
"""

from typing import Any, Dict

from services.logger_singleton import LoggerSingleton

logger = LoggerSingleton.get_logger(__name__)


class BatchWriter:
    def __init__(self, db, records_per_batch: int, label: str = "record"):
        if records_per_batch < 1:
            raise ValueError("records_per_batch must be >= 1")
        self.db = db
        self.records_per_batch = records_per_batch
        self.label = label
        self._batch = db.batch()
        self._pending = 0
        self.commits = 0
        self.committed_records = 0

    @property
    def pending(self) -> int:
        return self._pending

    def update(self, ref, data: Dict[str, Any]) -> None:
        self._batch.update(ref, data)

    def set(self, ref, data: Dict[str, Any]) -> None:
        self._batch.set(ref, data)

    def record_done(self) -> None:
        """Mark one logical record as staged; commit when the batch is full"""
        self._pending += 1
        if self._pending >= self.records_per_batch:
            self.commit()

    def commit(self) -> None:
        """Commit pending writes. Commit errors propagate to the caller."""
        if self._pending == 0:
            return
        self._batch.commit()
        self.commits += 1
        self.committed_records += self._pending
        logger.info(f"  Committed batch of {self._pending} {self.label} updates")
        self._batch = self.db.batch()
        self._pending = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # Flush only on a clean exit; a failed pass leaves staged writes unsent
        if exc_type is None:
            self.commit()
        return False

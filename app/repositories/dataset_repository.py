"""
app/repositories/dataset_repository.py

Dataset lifecycle persistence over the RowStore interface.

Every status write is checked against the lifecycle table and issued as a
compare-and-swap: the UPDATE filters on the expected current status and the
affected-row count tells whether this caller won.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import Any

from app.domain.dataset_ingestion import DatasetRecord
from app.domain.dataset_lifecycle import DatasetStatus, DatasetType, ensure_transition
from app.domain.errors import IllegalStatusTransitionError
from db.repositories.row_store import RowStore

logger = logging.getLogger(__name__)

DATASETS_TABLE = "datasets"


class DatasetRepository:
    def __init__(self, row_store: RowStore) -> None:
        self._rows = row_store

    def get(self, dataset_id: uuid.UUID) -> DatasetRecord | None:
        row = self._rows.select_one(DATASETS_TABLE, {"id": dataset_id})
        if row is None:
            return None
        return DatasetRecord.from_row(row)

    def create_queued(
        self,
        *,
        account_id: uuid.UUID,
        dataset_type: DatasetType,
        original_filename: str,
        storage_path: str,
        detected_headers: Sequence[str] | None,
    ) -> DatasetRecord:
        record = DatasetRecord(
            id=uuid.uuid4(),
            account_id=account_id,
            dataset_type=dataset_type.value,
            original_filename=original_filename,
            storage_path=storage_path,
            status=DatasetStatus.QUEUED.value,
            detected_headers=tuple(detected_headers) if detected_headers is not None else None,
            uploaded_at=datetime.now(timezone.utc),
        )
        self._rows.insert_many(
            DATASETS_TABLE,
            [
                {
                    "id": record.id,
                    "account_id": record.account_id,
                    "dataset_type": record.dataset_type,
                    "original_filename": record.original_filename,
                    "storage_path": record.storage_path,
                    "detected_headers": list(record.detected_headers) if record.detected_headers else None,
                    "status": record.status,
                    "uploaded_at": record.uploaded_at,
                }
            ],
        )
        return record

    def claim_for_processing(self, dataset_id: uuid.UUID) -> bool:
        """
        Atomically move a queued dataset to processing.

        Returns False when the dataset was not queued at the moment of the
        update (already claimed, finished or missing).
        """

        return self._compare_and_swap(
            dataset_id,
            expected=DatasetStatus.QUEUED,
            target=DatasetStatus.PROCESSING,
            patch={"error_message": None},
        )

    def mark_completed(
        self,
        dataset_id: uuid.UUID,
        *,
        row_count: int,
        min_date: date | None,
        max_date: date | None,
    ) -> None:
        swapped = self._compare_and_swap(
            dataset_id,
            expected=DatasetStatus.PROCESSING,
            target=DatasetStatus.COMPLETED,
            patch={
                "row_count": row_count,
                "min_date": min_date,
                "max_date": max_date,
                "error_message": None,
                "processed_at": datetime.now(timezone.utc),
            },
        )
        if not swapped:
            self._raise_lost_transition(dataset_id, DatasetStatus.COMPLETED)

    def mark_failed(self, dataset_id: uuid.UUID, *, error_message: str) -> None:
        swapped = self._compare_and_swap(
            dataset_id,
            expected=DatasetStatus.PROCESSING,
            target=DatasetStatus.FAILED,
            patch={
                "error_message": error_message,
                "processed_at": datetime.now(timezone.utc),
            },
        )
        if not swapped:
            self._raise_lost_transition(dataset_id, DatasetStatus.FAILED)

    def _compare_and_swap(
        self,
        dataset_id: uuid.UUID,
        *,
        expected: DatasetStatus,
        target: DatasetStatus,
        patch: dict[str, Any],
    ) -> bool:
        ensure_transition(expected, target, dataset_id=dataset_id)
        affected = self._rows.update(
            DATASETS_TABLE,
            {"id": dataset_id, "status": expected.value},
            {**patch, "status": target.value},
        )
        logger.debug(
            "Dataset status compare-and-swap dataset_id=%s %s->%s affected=%d",
            dataset_id,
            expected.value,
            target.value,
            affected,
        )
        return affected == 1

    def _raise_lost_transition(self, dataset_id: uuid.UUID, target: DatasetStatus) -> None:
        current = self.get(dataset_id)
        current_status = current.status if current is not None else "missing"
        raise IllegalStatusTransitionError(current_status, target.value, dataset_id=dataset_id)

"""
app/services/dataset_ingestion_service.py

Orchestrates the two halves of dataset ingestion.

finalize_upload records a freshly uploaded file as a queued dataset, typed by
its header signature. ingest_dataset drives one queued dataset through

    claim (queued -> processing, compare-and-swap)
    -> fetch bytes -> decode -> normalize -> chunked insert
    -> completed | failed

and always returns an IngestionResult; no exception escapes to the caller.
Chunks are inserted sequentially and committed one by one, so a failure in
chunk N leaves chunks 1..N-1 in place and they are reported in rows_inserted.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Sequence

from app.config import IngestionSettings, get_ingestion_settings, get_storage_settings
from app.domain.dataset_ingestion import (
    DatasetRecord,
    IngestionResult,
    NormalizationContext,
    NormalizationOutcome,
    RowRejection,
)
from app.domain.dataset_lifecycle import DatasetStatus, DatasetType, coerce_dataset_type
from app.domain.errors import (
    DatasetNotFoundError,
    DatasetNotQueuedError,
    DatasetOwnershipError,
    DetectionFailure,
    EmptyDatasetError,
    IngestionError,
    InvalidInputError,
    UnsupportedDatasetTypeError,
)
from app.normalizers import get_row_normalizer
from app.repositories.dataset_repository import DatasetRepository
from app.repositories.reference_data_repository import ReferenceDataRepository
from app.services.dataset_type_detector import detect_dataset_type, resolve_dataset_type
from app.services.tabular_reader import read_table
from db.repositories.errors import (
    DatabaseError,
    InvalidObjectPathError,
    ObjectNotFoundError,
    PersistenceError,
    StorageError,
)
from db.repositories.row_store import RowStore
from db.repositories.storage import LocalObjectStore, ObjectStore, normalize_object_path

logger = logging.getLogger(__name__)

_MAX_ERROR_MESSAGE_LENGTH = 2000


@dataclass
class _IngestionProgress:
    """
    Counters accumulated during one run so a failure can still report them.
    """

    dataset_type: str | None = None
    rows_processed: int = 0
    rows_inserted: int = 0
    rejections: tuple[RowRejection, ...] = field(default_factory=tuple)


class DatasetIngestionService:
    """
    Coordinates detection, normalization, chunked persistence and the
    dataset status lifecycle.
    """

    def __init__(
        self,
        *,
        row_store: RowStore,
        object_store: ObjectStore,
        settings: IngestionSettings | None = None,
    ) -> None:
        self._row_store = row_store
        self._object_store = object_store
        self._settings = settings or get_ingestion_settings()
        self._datasets = DatasetRepository(row_store)
        self._reference_data = ReferenceDataRepository(row_store)

    # ------------------------------------------------------------------
    # Upload finalize
    # ------------------------------------------------------------------

    def finalize_upload(
        self,
        *,
        account_id: uuid.UUID,
        storage_path: str,
        original_filename: str,
    ) -> DatasetRecord:
        """
        Register an uploaded object as a queued dataset.

        The object must live under the account's own prefix. A file whose
        header row is unreadable or unrecognized is still registered, typed
        by the configured fallback.
        """

        try:
            path = normalize_object_path(storage_path)
        except InvalidObjectPathError as exc:
            raise InvalidInputError(str(exc)) from exc

        if not path.startswith(f"{account_id}/"):
            raise InvalidInputError("Storage path must be inside the account's upload prefix.")

        filename = (original_filename or "").strip()
        if not filename:
            raise InvalidInputError("original_filename is required.")

        try:
            content = self._object_store.get(path)
        except ObjectNotFoundError as exc:
            raise InvalidInputError(f"Uploaded file not found: {path}") from exc

        try:
            detection = detect_dataset_type(content, filename)
        except DetectionFailure as exc:
            logger.warning(
                "Dataset type detection failed account_id=%s path=%s error=%s",
                account_id,
                path,
                exc.message,
            )
            detection = None

        resolved = resolve_dataset_type(detection, self._settings.fallback_dataset_type)
        if resolved.used_fallback:
            logger.warning(
                "Dataset type not recognized; using fallback account_id=%s path=%s dataset_type=%s",
                account_id,
                path,
                resolved.dataset_type.value,
            )

        record = self._datasets.create_queued(
            account_id=account_id,
            dataset_type=resolved.dataset_type,
            original_filename=filename,
            storage_path=path,
            detected_headers=resolved.detected_headers,
        )
        logger.info(
            "Dataset queued dataset_id=%s account_id=%s dataset_type=%s",
            record.id,
            account_id,
            record.dataset_type,
        )
        return record

    def get_dataset(self, dataset_id: uuid.UUID) -> DatasetRecord | None:
        return self._datasets.get(dataset_id)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest_dataset(self, dataset_id: uuid.UUID, account_id: uuid.UUID) -> IngestionResult:
        """
        Ingest one queued dataset owned by ``account_id``.

        Before the queued -> processing claim succeeds, failures leave the
        dataset untouched. After it, every failure ends in status failed.
        """

        try:
            dataset = self._claim(dataset_id, account_id)
        except (IngestionError, PersistenceError) as exc:
            logger.warning(
                "Dataset ingestion rejected dataset_id=%s account_id=%s error=%s",
                dataset_id,
                account_id,
                exc,
            )
            return IngestionResult.failed(
                dataset_id=dataset_id,
                error_message=str(exc),
                error_code=_error_code(exc),
            )

        progress = _IngestionProgress(dataset_type=dataset.dataset_type)
        try:
            return self._run(dataset, progress)
        except Exception as exc:
            return self._fail(dataset, progress, exc)

    def _claim(self, dataset_id: uuid.UUID, account_id: uuid.UUID) -> DatasetRecord:
        dataset = self._datasets.get(dataset_id)
        if dataset is None:
            raise DatasetNotFoundError(f"Dataset not found: {dataset_id}", dataset_id=dataset_id)
        if dataset.account_id != account_id:
            raise DatasetOwnershipError("Dataset does not belong to account", dataset_id=dataset_id)
        if dataset.status != DatasetStatus.QUEUED.value:
            raise DatasetNotQueuedError(
                f"Dataset is not in queued status: {dataset.status}",
                dataset_id=dataset_id,
            )
        if not self._datasets.claim_for_processing(dataset_id):
            raise DatasetNotQueuedError(
                "Dataset was claimed by another ingestion run",
                dataset_id=dataset_id,
            )
        logger.info(
            "Dataset ingestion started dataset_id=%s account_id=%s dataset_type=%s",
            dataset_id,
            account_id,
            dataset.dataset_type,
        )
        return dataset

    def _run(self, dataset: DatasetRecord, progress: _IngestionProgress) -> IngestionResult:
        content = self._object_store.get(dataset.storage_path)
        table = read_table(content, dataset.original_filename)

        dataset_type = coerce_dataset_type(dataset.dataset_type)
        if dataset_type is DatasetType.UNKNOWN:
            raise UnsupportedDatasetTypeError(
                f"No row normalizer for dataset type: {dataset.dataset_type}",
                dataset_id=dataset.id,
            )

        # Headers recorded at finalize drive column resolution; datasets typed
        # by fallback without a readable header row use the decoded headers.
        headers = dataset.detected_headers or table.headers
        normalizer = get_row_normalizer(dataset_type, headers)
        outcome = normalizer.normalize(table, self._build_context(dataset, dataset_type))
        progress.rows_processed = outcome.rows_processed
        progress.rejections = outcome.rejections
        self._log_rejections(dataset.id, outcome)

        if not outcome.valid_rows:
            raise EmptyDatasetError(
                "No valid rows found after normalization. "
                f"Processed {outcome.rows_processed} rows, all were invalid or skipped.",
                dataset_id=dataset.id,
            )

        self._insert_rows(dataset.id, outcome.valid_rows, progress)

        min_date, max_date = outcome.date_range()
        self._datasets.mark_completed(
            dataset.id,
            row_count=progress.rows_inserted,
            min_date=min_date,
            max_date=max_date,
        )
        logger.info(
            "Dataset ingestion completed dataset_id=%s rows_processed=%d rows_inserted=%d rows_rejected=%d",
            dataset.id,
            outcome.rows_processed,
            progress.rows_inserted,
            outcome.rows_rejected,
        )
        return IngestionResult(
            success=True,
            dataset_id=dataset.id,
            dataset_type=dataset.dataset_type,
            rows_processed=outcome.rows_processed,
            rows_inserted=progress.rows_inserted,
            rows_rejected=outcome.rows_rejected,
            row_errors=self._capped(outcome.rejections),
            min_date=min_date,
            max_date=max_date,
        )

    def _build_context(self, dataset: DatasetRecord, dataset_type: DatasetType) -> NormalizationContext:
        mappings: dict[str, uuid.UUID] = {}
        if dataset_type is DatasetType.QUOTA_ATTAINMENT:
            mappings = self._reference_data.load_corporate_account_mappings(dataset.account_id)
        return NormalizationContext(
            account_id=dataset.account_id,
            dataset_id=dataset.id,
            product_aliases=self._reference_data.load_product_aliases(),
            corporate_account_mappings=mappings,
        )

    def _insert_rows(
        self,
        dataset_id: uuid.UUID,
        rows: Sequence[Any],
        progress: _IngestionProgress,
    ) -> None:
        batch_size = self._settings.insert_batch_size
        log_every = self._settings.progress_log_every
        table_name = rows[0].table_name
        total_batches = (len(rows) + batch_size - 1) // batch_size

        for batch_number, start in enumerate(range(0, len(rows), batch_size), start=1):
            chunk = rows[start : start + batch_size]
            try:
                inserted = self._row_store.insert_many(table_name, [row.to_record() for row in chunk])
            except DatabaseError as exc:
                logger.error(
                    "Batch insert failed dataset_id=%s table=%s batch=%d/%d",
                    dataset_id,
                    table_name,
                    batch_number,
                    total_batches,
                )
                raise DatabaseError(f"Failed to insert batch {batch_number}/{total_batches}: {exc}") from exc

            before = progress.rows_inserted
            progress.rows_inserted += inserted
            if progress.rows_inserted // log_every > before // log_every or batch_number == total_batches:
                logger.info(
                    "Inserted batch dataset_id=%s table=%s batch=%d/%d rows=%d/%d",
                    dataset_id,
                    table_name,
                    batch_number,
                    total_batches,
                    progress.rows_inserted,
                    len(rows),
                )

    def _fail(
        self,
        dataset: DatasetRecord,
        progress: _IngestionProgress,
        exc: Exception,
    ) -> IngestionResult:
        error_message = str(exc) or type(exc).__name__
        logger.exception(
            "Dataset ingestion failed dataset_id=%s rows_inserted=%d error=%s",
            dataset.id,
            progress.rows_inserted,
            error_message,
        )
        try:
            self._datasets.mark_failed(dataset.id, error_message=error_message[:_MAX_ERROR_MESSAGE_LENGTH])
        except (IngestionError, PersistenceError):
            logger.exception("Failed to persist failed dataset state dataset_id=%s", dataset.id)

        return IngestionResult.failed(
            dataset_id=dataset.id,
            dataset_type=progress.dataset_type,
            error_message=error_message,
            error_code=_error_code(exc),
            rows_processed=progress.rows_processed,
            rows_inserted=progress.rows_inserted,
            rows_rejected=len(progress.rejections),
            row_errors=self._capped(progress.rejections),
        )

    def _capped(self, rejections: Sequence[RowRejection]) -> tuple[RowRejection, ...]:
        return tuple(rejections[: self._settings.max_row_errors])

    def _log_rejections(self, dataset_id: uuid.UUID, outcome: NormalizationOutcome) -> None:
        if not outcome.rejections:
            return

        by_kind = Counter(rejection.kind for rejection in outcome.rejections)
        logger.info(
            "Rows rejected dataset_id=%s rows_rejected=%d by_kind=%s",
            dataset_id,
            outcome.rows_rejected,
            dict(by_kind.most_common()),
        )
        if self._settings.log_row_errors:
            for rejection in self._capped(outcome.rejections):
                logger.warning(
                    "Row rejected dataset_id=%s row=%d kind=%s column=%s message=%s value=%r",
                    dataset_id,
                    rejection.row_number,
                    rejection.kind,
                    rejection.column,
                    rejection.message,
                    rejection.value,
                )


def _error_code(exc: Exception) -> str:
    if isinstance(exc, IngestionError):
        return exc.code
    if isinstance(exc, ObjectNotFoundError):
        return "OBJECT_NOT_FOUND"
    if isinstance(exc, StorageError):
        return "STORAGE_ERROR"
    if isinstance(exc, DatabaseError):
        return "DATABASE_ERROR"
    return "INTERNAL_ERROR"


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    return LocalObjectStore(get_storage_settings().root_dir)

"""
app/domain/dataset_ingestion.py

Domain models shared by detection, normalization and the ingestion
orchestrator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Sequence, Union

from app.domain.dataset_lifecycle import DatasetType, UsageLayout


class RejectionKind:
    MISSING_FIELD = "missing_field"
    INVALID_DATE = "invalid_date"
    INVALID_NUMBER = "invalid_number"
    UNKNOWN_MAPPING = "unknown_mapping"


@dataclass(frozen=True)
class TabularData:
    """
    Decoded spreadsheet body: ordered headers plus one mapping per data row.

    Row mappings are keyed by the header spelling found in the file.
    """

    headers: tuple[str, ...]
    rows: tuple[Mapping[str, Any], ...]


@dataclass(frozen=True)
class Detected:
    dataset_type: DatasetType
    headers: tuple[str, ...]
    usage_layout: UsageLayout | None = None


@dataclass(frozen=True)
class Unrecognized:
    headers: tuple[str, ...]
    reason: str


DetectionResult = Union[Detected, Unrecognized]


@dataclass(frozen=True)
class ResolvedDatasetType:
    """
    Outcome of the detection fallback policy applied at upload-finalize time.
    """

    dataset_type: DatasetType
    detected_headers: tuple[str, ...] | None
    used_fallback: bool


@dataclass(frozen=True)
class RowRejection:
    """
    One rejected spreadsheet row. row_number counts the header as row 1.
    """

    row_number: int
    kind: str
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class NormalizationContext:
    account_id: uuid.UUID
    dataset_id: uuid.UUID
    product_aliases: Mapping[str, str] = field(default_factory=dict)
    corporate_account_mappings: Mapping[str, uuid.UUID] = field(default_factory=dict)


@dataclass(frozen=True)
class NormalizationOutcome:
    """
    Result of folding every data row through a normalizer.
    """

    valid_rows: tuple[Any, ...]
    rejections: tuple[RowRejection, ...]
    rows_processed: int

    @property
    def rows_rejected(self) -> int:
        return len(self.rejections)

    def date_range(self) -> tuple[date | None, date | None]:
        dates = [row.canonical_date for row in self.valid_rows]
        if not dates:
            return None, None
        return min(dates), max(dates)


@dataclass(frozen=True)
class IngestionResult:
    """
    Outcome contract returned to the calling endpoint.
    """

    success: bool
    dataset_id: uuid.UUID
    rows_processed: int = 0
    rows_inserted: int = 0
    rows_rejected: int = 0
    dataset_type: str | None = None
    error_message: str | None = None
    error_code: str | None = None
    row_errors: tuple[RowRejection, ...] = ()
    min_date: date | None = None
    max_date: date | None = None

    @classmethod
    def failed(
        cls,
        *,
        dataset_id: uuid.UUID,
        error_message: str,
        error_code: str | None = None,
        dataset_type: str | None = None,
        rows_processed: int = 0,
        rows_inserted: int = 0,
        rows_rejected: int = 0,
        row_errors: Sequence[RowRejection] = (),
    ) -> "IngestionResult":
        return cls(
            success=False,
            dataset_id=dataset_id,
            dataset_type=dataset_type,
            rows_processed=rows_processed,
            rows_inserted=rows_inserted,
            rows_rejected=rows_rejected,
            error_message=error_message,
            error_code=error_code,
            row_errors=tuple(row_errors),
        )


@dataclass(frozen=True)
class DatasetRecord:
    """
    Read model of one ``datasets`` row.
    """

    id: uuid.UUID
    account_id: uuid.UUID
    dataset_type: str
    original_filename: str
    storage_path: str
    status: str
    detected_headers: tuple[str, ...] | None = None
    row_count: int | None = None
    min_date: date | None = None
    max_date: date | None = None
    error_message: str | None = None
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DatasetRecord":
        headers = row.get("detected_headers")
        return cls(
            id=row["id"],
            account_id=row["account_id"],
            dataset_type=row["dataset_type"],
            original_filename=row["original_filename"],
            storage_path=row["storage_path"],
            status=row["status"],
            detected_headers=tuple(headers) if headers is not None else None,
            row_count=row.get("row_count"),
            min_date=row.get("min_date"),
            max_date=row.get("max_date"),
            error_message=row.get("error_message"),
            uploaded_at=row.get("uploaded_at"),
            processed_at=row.get("processed_at"),
        )

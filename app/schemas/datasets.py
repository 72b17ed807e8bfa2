"""
app/schemas/datasets.py

Request and response schemas for dataset upload-finalize and processing.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.domain.dataset_ingestion import DatasetRecord, IngestionResult


class FinalizeUploadRequest(BaseModel):
    """
    Body of the upload-finalize call made once the file is in the object store.
    """

    storage_path: str = Field(..., min_length=1)
    original_filename: str = Field(..., min_length=1)


class DatasetResponse(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    dataset_type: str
    original_filename: str
    storage_path: str
    status: str
    detected_headers: list[str] | None = None
    row_count: int | None = None
    min_date: date | None = None
    max_date: date | None = None
    error_message: str | None = None
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None

    @classmethod
    def from_record(cls, record: DatasetRecord) -> "DatasetResponse":
        return cls(
            id=record.id,
            account_id=record.account_id,
            dataset_type=record.dataset_type,
            original_filename=record.original_filename,
            storage_path=record.storage_path,
            status=record.status,
            detected_headers=list(record.detected_headers) if record.detected_headers is not None else None,
            row_count=record.row_count,
            min_date=record.min_date,
            max_date=record.max_date,
            error_message=record.error_message,
            uploaded_at=record.uploaded_at,
            processed_at=record.processed_at,
        )


class RowRejectionResponse(BaseModel):
    """
    API response model for one rejected row.
    """

    row_number: int = Field(..., ge=2)
    kind: str
    message: str
    column: str | None = None
    value: str | None = None


class IngestionResultResponse(BaseModel):
    """
    API response model for one ingestion attempt.
    """

    success: bool
    dataset_id: uuid.UUID
    dataset_type: str | None = None
    rows_processed: int = Field(..., ge=0)
    rows_inserted: int = Field(..., ge=0)
    rows_rejected: int = Field(..., ge=0)
    error_message: str | None = None
    error_code: str | None = None
    row_errors: list[RowRejectionResponse] = Field(default_factory=list)
    min_date: date | None = None
    max_date: date | None = None

    @classmethod
    def from_result(cls, result: IngestionResult) -> "IngestionResultResponse":
        return cls(
            success=result.success,
            dataset_id=result.dataset_id,
            dataset_type=result.dataset_type,
            rows_processed=result.rows_processed,
            rows_inserted=result.rows_inserted,
            rows_rejected=result.rows_rejected,
            error_message=result.error_message,
            error_code=result.error_code,
            row_errors=[
                RowRejectionResponse(
                    row_number=rejection.row_number,
                    kind=rejection.kind,
                    message=rejection.message,
                    column=rejection.column,
                    value=rejection.value,
                )
                for rejection in result.row_errors
            ],
            min_date=result.min_date,
            max_date=result.max_date,
        )

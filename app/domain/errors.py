"""
app/domain/errors.py

Exception hierarchy for the dataset ingestion pipeline.

Persistence failures (object store, relational store) live in
db/repositories/errors.py so the db layer does not import from app.
"""

from __future__ import annotations

from typing import Any


class IngestionError(Exception):
    """
    Base exception for ingestion failures.

    code is a stable machine-readable identifier surfaced in logs and API
    payloads; dataset_id is attached when the failure belongs to one dataset.
    """

    code = "INGESTION_ERROR"

    def __init__(self, message: str, *, dataset_id: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.dataset_id = dataset_id


class InvalidInputError(IngestionError, ValueError):
    """Raised for malformed date serials or malformed header input."""

    code = "INVALID_INPUT"


class FileParseError(IngestionError):
    """Raised when an uploaded file cannot be decoded into rows."""

    code = "FILE_PARSE_ERROR"


class DetectionFailure(IngestionError):
    """Raised when a file is unreadable at detection time."""

    code = "TYPE_DETECTION_ERROR"


class UnsupportedDatasetTypeError(IngestionError):
    """Raised when no normalizer exists for the recorded dataset type."""

    code = "UNSUPPORTED_DATASET_TYPE"


class RowValidationError(IngestionError):
    """
    Raised by cell parsers for one bad cell; converted into a RowRejection
    by the row normalizer and never propagated past it.
    """

    code = "ROW_VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        column: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.column = column
        self.value = value


class IllegalStatusTransitionError(IngestionError):
    """Raised when a dataset status write would violate the lifecycle."""

    code = "ILLEGAL_STATUS_TRANSITION"

    def __init__(self, current: str, target: str, *, dataset_id: Any = None) -> None:
        super().__init__(
            f"Illegal dataset status transition: {current} -> {target}",
            dataset_id=dataset_id,
        )
        self.current = current
        self.target = target


class DatasetNotQueuedError(IngestionError):
    """Raised when a dataset cannot be claimed because it is not queued."""

    code = "DATASET_NOT_QUEUED"


class DatasetNotFoundError(IngestionError):
    """Raised when a dataset id does not resolve to a record."""

    code = "DATASET_NOT_FOUND"


class DatasetOwnershipError(IngestionError):
    """Raised when a dataset belongs to a different account."""

    code = "DATASET_OWNERSHIP"


class EmptyDatasetError(IngestionError):
    """Raised when normalization yields zero valid rows."""

    code = "NO_VALID_ROWS"

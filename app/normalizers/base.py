"""
app/normalizers/base.py

Shared machinery for per-dataset-type row normalizers.

A normalizer is a pure fold over the decoded table: every non-blank data row
becomes either one canonical record or one RowRejection. Nothing here touches
storage or the network.
"""

from __future__ import annotations

import abc
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from app.domain.dataset_ingestion import (
    NormalizationContext,
    NormalizationOutcome,
    RejectionKind,
    RowRejection,
    TabularData,
)
from app.domain.errors import RowValidationError
from app.services.tabular_reader import is_blank_row
from app.validators.cell_parsers import is_blank

UNKNOWN_PRODUCT_KEY = "unknown"


class ColumnResolver:
    """
    Maps canonical column names onto the header spelling used by one file.

    Lookups are case-insensitive and whitespace-insensitive. The first
    header matching any candidate wins.
    """

    def __init__(self, headers: Sequence[str]) -> None:
        self._headers = tuple(headers)
        self._by_normalized: dict[str, str] = {}
        for header in self._headers:
            self._by_normalized.setdefault(header.strip().lower(), header)

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    def resolve(self, *candidates: str) -> str | None:
        for candidate in candidates:
            header = self._by_normalized.get(candidate.strip().lower())
            if header is not None:
                return header
        return None

    def value(self, row: Mapping[str, Any], *candidates: str) -> Any:
        header = self.resolve(*candidates)
        if header is None:
            return None
        return row.get(header)

    def unmapped(self, row: Mapping[str, Any], consumed: Iterable[str]) -> dict[str, Any] | None:
        """
        Collect the non-blank cells whose header is not in ``consumed``.
        """

        consumed_normalized = {name.strip().lower() for name in consumed}
        extras = {
            header: json_safe(value)
            for header, value in row.items()
            if header.strip().lower() not in consumed_normalized and not is_blank(value)
        }
        return extras or None


def normalize_product_key(product_name: Any, aliases: Mapping[str, str]) -> str:
    """
    Canonical product key for a product name: the alias target when one is
    registered, else the trimmed lower-case name.
    """

    if is_blank(product_name):
        return UNKNOWN_PRODUCT_KEY
    normalized = str(product_name).strip().lower()
    return aliases.get(normalized, normalized)


def normalize_user_key(user_identifier: Any) -> str:
    if is_blank(user_identifier):
        return "unknown"
    return str(user_identifier).strip().lower()


def normalize_project_key(project: Any) -> str | None:
    if is_blank(project):
        return None
    return str(project).strip() or None


def json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class RowNormalizer(abc.ABC):
    """
    Base class for one dataset type's row normalizer.
    """

    def __init__(self, headers: Sequence[str]) -> None:
        self._columns = ColumnResolver(headers)

    @property
    def columns(self) -> ColumnResolver:
        return self._columns

    def normalize(self, table: TabularData, context: NormalizationContext) -> NormalizationOutcome:
        """
        Fold every data row into ``(valid_rows, rejections)``.

        Row numbers count the header as row 1. Fully blank rows are skipped
        and excluded from rows_processed.
        """

        valid_rows: list[Any] = []
        rejections: list[RowRejection] = []
        rows_processed = 0

        for row_number, row in enumerate(table.rows, start=2):
            if is_blank_row(row):
                continue
            rows_processed += 1
            try:
                valid_rows.append(self.normalize_row(row, context))
            except RowValidationError as exc:
                rejections.append(
                    RowRejection(
                        row_number=row_number,
                        kind=exc.kind,
                        message=exc.message,
                        column=exc.column,
                        value=exc.value,
                    )
                )

        return NormalizationOutcome(
            valid_rows=tuple(valid_rows),
            rejections=tuple(rejections),
            rows_processed=rows_processed,
        )

    @abc.abstractmethod
    def normalize_row(self, row: Mapping[str, Any], context: NormalizationContext) -> Any:
        """
        Build one canonical record or raise RowValidationError.
        """

    def _label(self, *candidates: str) -> str:
        return self._columns.resolve(*candidates) or candidates[0]


def unknown_mapping(column: str, value: Any) -> RowValidationError:
    return RowValidationError(
        "Corporate account is not mapped to this account.",
        kind=RejectionKind.UNKNOWN_MAPPING,
        column=column,
        value=None if value is None else str(value),
    )

"""
app/validators/cell_parsers.py

Cell-level coercions used by the row normalizers.

Each parser takes the raw cell plus the column label it came from and either
returns the typed value or raises RowValidationError with the rejection kind
set. Blank optional cells always come back as None.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from app.domain.dataset_ingestion import RejectionKind
from app.domain.errors import RowValidationError
from app.utils.excel_dates import parse_date_value


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def stringify(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_required_string(value: Any, *, column: str) -> str:
    if is_blank(value):
        raise RowValidationError(
            "Required value is missing.",
            kind=RejectionKind.MISSING_FIELD,
            column=column,
            value=stringify(value),
        )
    return _text(value)


def parse_optional_string(value: Any) -> str | None:
    if is_blank(value):
        return None
    return _text(value)


def parse_optional_decimal(value: Any, *, column: str) -> Decimal | None:
    """
    Parse a numeric cell as Decimal.

    Thousands separators are stripped from text cells. Floats coming from
    spreadsheets are converted through their repr so 0.1 stays 0.1.
    """

    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise _invalid_number(value, column)
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    else:
        cleaned = str(value).replace(",", "").strip()
        try:
            parsed = Decimal(cleaned)
        except (InvalidOperation, ValueError) as exc:
            raise _invalid_number(value, column) from exc

    if not parsed.is_finite():
        raise _invalid_number(value, column)
    return parsed


def parse_optional_int(value: Any, *, column: str) -> int | None:
    parsed = parse_optional_decimal(value, column=column)
    if parsed is None:
        return None
    if parsed != parsed.to_integral_value():
        raise RowValidationError(
            "Value must be a whole number.",
            kind=RejectionKind.INVALID_NUMBER,
            column=column,
            value=stringify(value),
        )
    return int(parsed)


def parse_required_date(value: Any, *, column: str) -> date:
    """
    Parse a required date cell; the result is a datetime only when the
    source cell carried a time of day.
    """

    if is_blank(value):
        raise RowValidationError(
            "Required date is missing.",
            kind=RejectionKind.MISSING_FIELD,
            column=column,
            value=stringify(value),
        )
    parsed = parse_date_value(value)
    if parsed is None:
        raise _invalid_date(value, column)
    return parsed


def parse_optional_date(value: Any, *, column: str) -> date | None:
    if is_blank(value):
        return None
    parsed = parse_date_value(value)
    if parsed is None:
        raise _invalid_date(value, column)
    return parsed


def calendar_day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def source_timestamp(value: date) -> str | None:
    """
    ISO timestamp of a parsed date cell when it carried a time of day.
    """

    if isinstance(value, datetime):
        return value.isoformat(timespec="milliseconds")
    return None


def _text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value).strip()


def _invalid_number(value: Any, column: str) -> RowValidationError:
    return RowValidationError(
        "Value is not a valid number.",
        kind=RejectionKind.INVALID_NUMBER,
        column=column,
        value=stringify(value),
    )


def _invalid_date(value: Any, column: str) -> RowValidationError:
    return RowValidationError(
        "Invalid date format.",
        kind=RejectionKind.INVALID_DATE,
        column=column,
        value=stringify(value),
    )

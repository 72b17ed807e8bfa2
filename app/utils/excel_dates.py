"""
app/utils/excel_dates.py

Spreadsheet serial-date conversion and textual date parsing.

Spreadsheet serials count days from 1900-01-01 (serial 1). The legacy
format treats 1900 as a leap year, so serial 60 is the nonexistent
1900-02-29; every serial >= 60 is shifted back one day before the epoch
offset is applied. Serials 59 and 60 therefore both land on 1900-02-28
and serial 61 is 1900-03-01.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from app.domain.errors import InvalidInputError

SERIAL_EPOCH = date(1900, 1, 1)
LEAP_BUG_SERIAL = 60
SECONDS_PER_DAY = 24 * 60 * 60

MIN_SUPPORTED_YEAR = 1900
MAX_SUPPORTED_YEAR = 2100

_DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
)

_SERIAL_TEXT = re.compile(r"^\d{1,5}(\.\d+)?$")
_OVERSIZED_YEAR = re.compile(r"^[+\-]?\d{6,}")
_FRACTIONAL_SECONDS = re.compile(r"\.\d+")


def _coerce_serial(serial: Any) -> float | None:
    if serial is None or isinstance(serial, bool):
        return None
    if not isinstance(serial, (int, float, Decimal)):
        return None
    if isinstance(serial, Decimal) and not serial.is_finite():
        return None
    try:
        value = float(serial)
    except OverflowError:
        return None
    # Decimal("1e400") converts to inf without raising
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _checked_serial(serial: Any) -> float:
    value = _coerce_serial(serial)
    if value is None or value < 1:
        raise InvalidInputError(f"Invalid spreadsheet date serial: {serial!r}")
    return value


def _date_for_serial(value: float, serial: Any) -> date:
    days = math.floor(value)
    adjusted_days = days - 1 if days >= LEAP_BUG_SERIAL else days
    try:
        return SERIAL_EPOCH + timedelta(days=adjusted_days - 1)
    except OverflowError as exc:
        raise InvalidInputError(f"Spreadsheet date serial out of range: {serial!r}") from exc


def serial_to_date(serial: Any) -> date:
    """
    Convert a spreadsheet serial day-count into a calendar date.

    Only the integer part of the serial is used. Raises InvalidInputError
    for missing, NaN, non-numeric, out-of-range or sub-1 serials.
    """

    return _date_for_serial(_checked_serial(serial), serial)


def serial_to_iso_date_string(serial: Any) -> str | None:
    """
    Convert a serial to ``YYYY-MM-DD``; invalid input yields None instead
    of raising so one bad cell never aborts a batch.
    """

    try:
        return serial_to_date(serial).isoformat()
    except InvalidInputError:
        return None


def serial_to_datetime(serial: Any) -> datetime | None:
    """
    Convert a serial to a datetime, decoding the fractional day as a
    time of day at millisecond resolution.
    """

    try:
        value = _checked_serial(serial)
        day = _date_for_serial(value, serial)
    except InvalidInputError:
        return None

    fractional = value - math.floor(value)
    if fractional <= 0:
        return datetime.combine(day, time())

    total_seconds = fractional * SECONDS_PER_DAY
    hours = math.floor(total_seconds / 3600)
    minutes = math.floor((total_seconds % 3600) / 60)
    seconds = math.floor(total_seconds % 60)
    milliseconds = math.floor((total_seconds % 1) * 1000)
    return datetime.combine(
        day,
        time(
            hour=hours,
            minute=minutes,
            second=seconds,
            microsecond=milliseconds * 1000,
        ),
    )


def _in_supported_range(value: date) -> bool:
    return MIN_SUPPORTED_YEAR <= value.year <= MAX_SUPPORTED_YEAR


def _has_time_of_day(value: datetime) -> bool:
    return value.time() != time()


def parse_date_value(value: Any) -> date | None:
    """
    Parse one spreadsheet cell into a date.

    Returns a ``datetime`` when the cell carried a time of day, a ``date``
    otherwise, and None when the cell cannot be read as a date in the
    1900-2100 range. Numeric cells and short all-digit strings are treated
    as spreadsheet serials.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed: date = value.replace(tzinfo=None) if _has_time_of_day(value) else value.date()
        return parsed if _in_supported_range(parsed) else None

    if isinstance(value, date):
        return value if _in_supported_range(value) else None

    if isinstance(value, (int, float, Decimal)):
        return _parse_serial_cell(value)

    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw or len(raw) > 50 or _OVERSIZED_YEAR.match(raw):
        return None

    if _SERIAL_TEXT.match(raw):
        return _parse_serial_cell(float(raw))

    return _parse_date_text(raw)


def _parse_serial_cell(value: int | float | Decimal) -> date | None:
    parsed_dt = serial_to_datetime(value)
    if parsed_dt is None:
        return None
    parsed: date = parsed_dt if _has_time_of_day(parsed_dt) else parsed_dt.date()
    return parsed if _in_supported_range(parsed) else None


def _parse_date_text(raw: str) -> date | None:
    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed_iso = datetime.fromisoformat(normalized)
    except ValueError:
        parsed_iso = None

    if parsed_iso is not None:
        parsed_iso = parsed_iso.replace(tzinfo=None)
        result: date = parsed_iso if _has_time_of_day(parsed_iso) else parsed_iso.date()
        return result if _in_supported_range(result) else None

    without_fraction = _FRACTIONAL_SECONDS.sub("", raw)
    for fmt in _DATETIME_FORMATS:
        try:
            parsed_dt = datetime.strptime(without_fraction, fmt)
        except ValueError:
            continue
        result = parsed_dt if _has_time_of_day(parsed_dt) else parsed_dt.date()
        return result if _in_supported_range(result) else None

    for fmt in _DATE_FORMATS:
        try:
            parsed_day = datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
        return parsed_day if _in_supported_range(parsed_day) else None

    return None


def to_iso_date(value: Any) -> str | None:
    """
    Return the ``YYYY-MM-DD`` form of any parseable date cell.
    """

    parsed = parse_date_value(value)
    if parsed is None:
        return None
    if isinstance(parsed, datetime):
        return parsed.date().isoformat()
    return parsed.isoformat()

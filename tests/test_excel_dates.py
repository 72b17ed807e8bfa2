"""
tests/test_excel_dates.py

Spreadsheet serial conversion and date-cell parsing.

Coverage
--------
- Serial epoch and the 1900 leap-year quirk around serials 59-61
- Invalid serials raise, the lenient helpers return None
- Fractional serials decode to a time of day
- Text, serial and datetime cells through parse_date_value
- Range limits and oversized years
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.domain.errors import InvalidInputError
from app.utils.excel_dates import (
    parse_date_value,
    serial_to_date,
    serial_to_datetime,
    serial_to_iso_date_string,
    to_iso_date,
)


# ---------------------------------------------------------------------------
# serial_to_date
# ---------------------------------------------------------------------------


class TestSerialToDate:
    def test_serial_one_is_first_of_january_1900(self) -> None:
        assert serial_to_date(1) == date(1900, 1, 1)

    @pytest.mark.parametrize(
        ("serial", "expected"),
        [
            (59, date(1900, 2, 28)),
            (60, date(1900, 2, 28)),
            (61, date(1900, 3, 1)),
        ],
    )
    def test_phantom_leap_day_collapses_onto_february_28(self, serial: int, expected: date) -> None:
        assert serial_to_date(serial) == expected

    def test_unix_epoch_and_modern_serial(self) -> None:
        assert serial_to_date(25569) == date(1970, 1, 1)
        assert serial_to_date(45658) == date(2025, 1, 1)

    def test_fraction_is_ignored(self) -> None:
        assert serial_to_date(45658.99) == date(2025, 1, 1)

    def test_decimal_serial_is_accepted(self) -> None:
        assert serial_to_date(Decimal("45658")) == date(2025, 1, 1)

    def test_output_is_non_decreasing_across_the_quirk(self) -> None:
        days = [serial_to_date(serial) for serial in range(1, 400)]
        assert days == sorted(days)

    @pytest.mark.parametrize("serial", [None, 0, -5, 0.5, math.nan, math.inf, "45658", True])
    def test_invalid_serial_raises(self, serial: object) -> None:
        with pytest.raises(InvalidInputError):
            serial_to_date(serial)

    @pytest.mark.parametrize("serial", [10**400, Decimal("1e400"), 1e300])
    def test_oversized_serial_raises_invalid_input(self, serial: object) -> None:
        with pytest.raises(InvalidInputError):
            serial_to_date(serial)

    def test_invalid_input_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            serial_to_date(None)


class TestLenientSerialHelpers:
    def test_iso_string(self) -> None:
        assert serial_to_iso_date_string(45658) == "2025-01-01"

    def test_iso_string_invalid_returns_none(self) -> None:
        assert serial_to_iso_date_string(None) is None
        assert serial_to_iso_date_string(math.nan) is None
        assert serial_to_iso_date_string(10**400) is None
        assert serial_to_iso_date_string(Decimal("1e400")) is None
        assert serial_to_iso_date_string(1e300) is None

    def test_datetime_midday(self) -> None:
        assert serial_to_datetime(25569.5) == datetime(1970, 1, 1, 12, 0, 0)

    def test_datetime_evening(self) -> None:
        assert serial_to_datetime(45658.75) == datetime(2025, 1, 1, 18, 0, 0)

    def test_datetime_whole_serial_is_midnight(self) -> None:
        assert serial_to_datetime(45658) == datetime(2025, 1, 1)

    def test_datetime_invalid_returns_none(self) -> None:
        assert serial_to_datetime(0) is None
        assert serial_to_datetime(10**400) is None
        assert serial_to_datetime(Decimal("1e400")) is None
        assert serial_to_datetime(Decimal("NaN")) is None


# ---------------------------------------------------------------------------
# parse_date_value
# ---------------------------------------------------------------------------


class TestParseDateValue:
    @pytest.mark.parametrize(
        "raw",
        ["2025-03-15", "2025/03/15", "03/15/2025", "03-15-2025", " 2025-03-15 "],
    )
    def test_date_only_text(self, raw: str) -> None:
        assert parse_date_value(raw) == date(2025, 3, 15)

    def test_iso_timestamp_keeps_time_of_day(self) -> None:
        parsed = parse_date_value("2025-03-15T10:30:00")
        assert isinstance(parsed, datetime)
        assert parsed == datetime(2025, 3, 15, 10, 30)

    def test_zulu_suffix_drops_timezone(self) -> None:
        parsed = parse_date_value("2025-03-15T10:30:00Z")
        assert parsed == datetime(2025, 3, 15, 10, 30)
        assert isinstance(parsed, datetime) and parsed.tzinfo is None

    def test_midnight_timestamp_is_a_plain_date(self) -> None:
        parsed = parse_date_value("2025-03-15 00:00:00")
        assert parsed == date(2025, 3, 15)
        assert not isinstance(parsed, datetime)

    def test_us_timestamp_with_minutes(self) -> None:
        assert parse_date_value("03/15/2025 14:05") == datetime(2025, 3, 15, 14, 5)

    def test_numeric_serial_cell(self) -> None:
        assert parse_date_value(45658) == date(2025, 1, 1)

    def test_short_digit_string_is_a_serial(self) -> None:
        assert parse_date_value("45658") == date(2025, 1, 1)

    def test_fractional_serial_carries_time(self) -> None:
        assert parse_date_value(45658.5) == datetime(2025, 1, 1, 12, 0)

    def test_native_datetime_cell(self) -> None:
        assert parse_date_value(datetime(2025, 1, 5)) == date(2025, 1, 5)
        assert parse_date_value(datetime(2025, 1, 5, 8, 15)) == datetime(2025, 1, 5, 8, 15)

    def test_native_date_cell(self) -> None:
        assert parse_date_value(date(2024, 2, 29)) == date(2024, 2, 29)

    @pytest.mark.parametrize(
        "raw",
        [None, "", "   ", "not a date", "2025-13-01", "123456-01-01", True, object()],
    )
    def test_unparseable_returns_none(self, raw: object) -> None:
        assert parse_date_value(raw) is None

    def test_out_of_range_years_return_none(self) -> None:
        assert parse_date_value("1850-01-01") is None
        assert parse_date_value("2101-01-01") is None
        assert parse_date_value(date(2200, 1, 1)) is None

    def test_to_iso_date_strips_time(self) -> None:
        assert to_iso_date(45658.25) == "2025-01-01"
        assert to_iso_date("2025-03-15T23:59:59") == "2025-03-15"
        assert to_iso_date("garbage") is None

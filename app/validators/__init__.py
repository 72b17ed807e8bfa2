"""
app/validators package marker.
"""

from app.validators.cell_parsers import (
    is_blank,
    parse_optional_date,
    parse_optional_decimal,
    parse_optional_int,
    parse_optional_string,
    parse_required_date,
    parse_required_string,
)

__all__ = [
    "is_blank",
    "parse_optional_date",
    "parse_optional_decimal",
    "parse_optional_int",
    "parse_optional_string",
    "parse_required_date",
    "parse_required_string",
]

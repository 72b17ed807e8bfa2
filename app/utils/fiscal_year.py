"""
app/utils/fiscal_year.py

Fiscal years run February through January and are named after the
calendar year in which they end.
"""

from __future__ import annotations

from datetime import date

_JANUARY_NAMES = frozenset({"january", "jan"})


def calculate_fiscal_year(commission_month: str, transaction_date: date) -> int:
    """
    Fiscal year of a commission booked in ``commission_month``.

    A January commission belongs to the fiscal year of the transaction's
    calendar year; any other month belongs to the following one.
    """

    if commission_month.strip().lower() in _JANUARY_NAMES:
        return transaction_date.year
    return transaction_date.year + 1

"""
app/normalizers/manual_adjustments.py

Manual token adjustments: one signed token correction per row.
"""

from __future__ import annotations

from typing import Any, Mapping

from app.domain.canonical_rows import ManualAdjustmentRow
from app.domain.dataset_ingestion import NormalizationContext
from app.normalizers.base import RowNormalizer, normalize_product_key
from app.validators.cell_parsers import (
    calendar_day,
    is_blank,
    parse_optional_date,
    parse_optional_decimal,
    parse_optional_string,
    parse_required_date,
    source_timestamp,
)

NOT_APPLICABLE_PRODUCT = "n/a"

_CONSUMED_COLUMNS: tuple[str, ...] = (
    "usagedate",
    "transactiondate",
    "reasontype",
    "productname",
    "tokensconsumed",
    "reasoncomment",
)


class ManualAdjustmentsNormalizer(RowNormalizer):
    def normalize_row(self, row: Mapping[str, Any], context: NormalizationContext) -> ManualAdjustmentRow:
        columns = self.columns

        usage_date = parse_required_date(
            columns.value(row, "usageDate"),
            column=self._label("usageDate"),
        )
        transaction_date = parse_optional_date(
            columns.value(row, "transactionDate"),
            column=self._label("transactionDate"),
        )
        tokens = parse_optional_decimal(
            columns.value(row, "tokensConsumed"),
            column=self._label("tokensConsumed"),
        )
        product_name = parse_optional_string(columns.value(row, "productName"))

        raw_data = columns.unmapped(row, _CONSUMED_COLUMNS) or {}
        timestamp = source_timestamp(usage_date)
        if timestamp is not None:
            raw_data["sourceTimestamp"] = timestamp

        return ManualAdjustmentRow(
            account_id=context.account_id,
            dataset_id=context.dataset_id,
            usage_date=calendar_day(usage_date),
            transaction_date=calendar_day(transaction_date) if transaction_date else None,
            reason_type=parse_optional_string(columns.value(row, "reasonType")),
            reason_comment=parse_optional_string(columns.value(row, "reasonComment")),
            product_name=product_name,
            product_key=_product_key(product_name, context),
            tokens_consumed=tokens,
            raw_data=raw_data or None,
        )


def _product_key(product_name: str | None, context: NormalizationContext) -> str:
    if is_blank(product_name) or product_name.strip().lower() == NOT_APPLICABLE_PRODUCT:
        return NOT_APPLICABLE_PRODUCT
    return normalize_product_key(product_name, context.product_aliases)

"""
app/domain/canonical_rows.py

Typed canonical records produced by the row normalizers, one per
dataset type, each knowing its destination table.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar


@dataclass(frozen=True)
class ManualAdjustmentRow:
    table_name: ClassVar[str] = "manual_adjustment_rows"

    account_id: uuid.UUID
    dataset_id: uuid.UUID
    usage_date: date
    transaction_date: date | None
    reason_type: str | None
    reason_comment: str | None
    product_name: str | None
    product_key: str
    tokens_consumed: Decimal | None
    raw_data: dict[str, Any] | None

    @property
    def canonical_date(self) -> date:
        return self.usage_date

    def to_record(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RawUsageRow:
    table_name: ClassVar[str] = "raw_usage_rows"

    account_id: uuid.UUID
    dataset_id: uuid.UUID
    usage_layout: str
    usage_date: date
    product_name: str
    product_key: str
    user_key: str
    project_key: str | None
    tokens_consumed: Decimal | None
    usage_hours: Decimal | None
    use_count: int | None
    event_count: int | None
    dimensions: dict[str, Any] | None

    @property
    def canonical_date(self) -> date:
        return self.usage_date

    def to_record(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QuotaAttainmentTransaction:
    table_name: ClassVar[str] = "quota_attainment_transactions"

    account_id: uuid.UUID
    dataset_id: uuid.UUID
    commission_month: str
    transaction_date: date
    fiscal_year: int
    corporate_account_name: str
    sales_rep_name: str | None
    order_number: str | None
    agreement_id: str | None
    currency_code: str | None
    plan_currency: str | None
    final_credited_amount: Decimal | None
    invoice_amt_dc: Decimal | None
    annual_inv_amt_dc: Decimal | None
    total_days: Decimal | None
    trigger_multiplier: Decimal | None
    multiplier_factor: Decimal | None
    original_order_date: date | None
    contract_start_date: date | None
    contract_end_date: date | None
    settlement_start_date: date | None
    settlement_end_date: date | None
    load_date: date | None
    attributes: dict[str, Any] | None

    @property
    def canonical_date(self) -> date:
        return self.transaction_date

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

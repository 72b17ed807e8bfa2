"""
db/models/quota_attainment_transaction.py

Canonical commission transactions used for quota attainment.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CanonicalRowMixin


class QuotaAttainmentTransactionRecord(Base, CanonicalRowMixin):
    """
    attributes carries the remaining text columns of the source sheet
    under snake_case keys.
    """

    __tablename__ = "quota_attainment_transactions"

    commission_month: Mapped[str] = mapped_column(String(32), nullable=False)

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)

    corporate_account_name: Mapped[str] = mapped_column(String(512), nullable=False)

    sales_rep_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    order_number: Mapped[str | None] = mapped_column(String(255), nullable=True)

    agreement_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    currency_code: Mapped[str | None] = mapped_column(String(16), nullable=True)

    plan_currency: Mapped[str | None] = mapped_column(String(16), nullable=True)

    final_credited_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    invoice_amt_dc: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    annual_inv_amt_dc: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    total_days: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    trigger_multiplier: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)

    multiplier_factor: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)

    original_order_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    contract_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    contract_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    settlement_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    settlement_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    load_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    attributes: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        Index("ix_quota_attainment_transactions_dataset_id", "dataset_id"),
        Index(
            "ix_quota_attainment_transactions_account_fy",
            "account_id",
            "fiscal_year",
        ),
    )

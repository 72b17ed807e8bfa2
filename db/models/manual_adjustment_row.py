"""
db/models/manual_adjustment_row.py

Canonical manual token adjustment rows.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CanonicalRowMixin


class ManualAdjustmentRowRecord(Base, CanonicalRowMixin):
    __tablename__ = "manual_adjustment_rows"

    usage_date: Mapped[date] = mapped_column(Date, nullable=False)

    transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    reason_type: Mapped[str | None] = mapped_column(String(255), nullable=True)

    reason_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    product_key: Mapped[str] = mapped_column(String(255), nullable=False)

    tokens_consumed: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    raw_data: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Source columns without a dedicated field",
    )

    __table_args__ = (
        Index("ix_manual_adjustment_rows_dataset_id", "dataset_id"),
        Index("ix_manual_adjustment_rows_account_date", "account_id", "usage_date"),
    )

"""
db/models/raw_usage_row.py

Canonical per-user usage rows from cloud, desktop and event exports.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CanonicalRowMixin


class RawUsageRowRecord(Base, CanonicalRowMixin):
    """
    One user's usage of one product on one day, or one logged event.
    """

    __tablename__ = "raw_usage_rows"

    usage_layout: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="daily_user_cloud | daily_user_desktop | acc_bim360",
    )

    usage_date: Mapped[date] = mapped_column(Date, nullable=False)

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    product_key: Mapped[str] = mapped_column(String(255), nullable=False)

    user_key: Mapped[str] = mapped_column(String(320), nullable=False)

    project_key: Mapped[str | None] = mapped_column(String(512), nullable=True)

    tokens_consumed: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    usage_hours: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    use_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    event_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    dimensions: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        Index("ix_raw_usage_rows_dataset_id", "dataset_id"),
        Index("ix_raw_usage_rows_account_date", "account_id", "usage_date"),
        Index("ix_raw_usage_rows_account_product", "account_id", "product_key"),
    )

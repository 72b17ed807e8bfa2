"""
db/models/dataset.py

Dataset model: one uploaded file and its ingestion lifecycle.
"""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.account import Account


class Dataset(Base, TimestampMixin):
    """
    One uploaded file awaiting or having completed ingestion.

    detected_headers keeps the header row exactly as spelled in the file so
    the normalizer can resolve columns without re-detecting the type. status
    only ever moves queued -> processing -> completed | failed.
    """

    __tablename__ = "datasets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    dataset_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="unknown",
        comment="manual_adjustments | raw_usage | quota_attainment | unknown",
    )

    original_filename: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )

    storage_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Object store key, always prefixed with the owning account id",
    )

    detected_headers: Mapped[list | None] = mapped_column(
        JSONB,
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="queued",
        comment="Pipeline state: queued → processing → completed | failed",
    )

    row_count: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Rows inserted by the last completed ingestion",
    )

    min_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    max_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Timestamp when processing completed or failed",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    account: Mapped["Account"] = relationship(
        "Account",
        back_populates="datasets",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_datasets_account_id", "account_id"),
        Index("ix_datasets_status", "status"),
        Index("ix_datasets_account_status", "account_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Dataset id={self.id} type={self.dataset_type!r} "
            f"account_id={self.account_id} status={self.status!r}>"
        )

"""
db/models/account.py

Account model: the tenant that owns uploaded datasets and their canonical rows.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dataset import Dataset


class Account(Base, TimestampMixin):
    """
    One customer account on the dashboard.

    Account CRUD lives outside the ingestion service; the table is declared
    here so datasets and canonical rows can reference it.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="URL-safe identifier used by the dashboard routes",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    datasets: Mapped[list["Dataset"]] = relationship(
        "Dataset",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_accounts_name", "name"),)

    def __repr__(self) -> str:
        return f"<Account id={self.id} slug={self.slug!r}>"

"""
db/models/corporate_account_mapping.py

Links corporate account names in commission exports to dashboard accounts.
"""

import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CorporateAccountMapping(Base, TimestampMixin):
    __tablename__ = "corporate_account_mappings"

    corporate_account_name: Mapped[str] = mapped_column(
        String(512),
        primary_key=True,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (Index("ix_corporate_account_mappings_account_id", "account_id"),)

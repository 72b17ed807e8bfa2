"""
db/models/product_alias.py

Alias table mapping spellings found in uploads to canonical product keys.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ProductAlias(Base, TimestampMixin):
    __tablename__ = "product_aliases"

    alias: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Lower-cased, trimmed product name as it appears in uploads",
    )

    product_key: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<ProductAlias alias={self.alias!r} product_key={self.product_key!r}>"

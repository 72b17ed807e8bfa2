"""
app/repositories/reference_data_repository.py

Read-only lookups the normalizers need: product aliases and corporate
account mappings.
"""

from __future__ import annotations

import uuid

from db.repositories.row_store import RowStore

PRODUCT_ALIASES_TABLE = "product_aliases"
CORPORATE_ACCOUNT_MAPPINGS_TABLE = "corporate_account_mappings"


class ReferenceDataRepository:
    def __init__(self, row_store: RowStore) -> None:
        self._rows = row_store

    def load_product_aliases(self) -> dict[str, str]:
        """
        Return ``{trimmed lower-case alias: product_key}``.
        """

        aliases: dict[str, str] = {}
        for row in self._rows.select_many(PRODUCT_ALIASES_TABLE, {}):
            alias = str(row.get("alias") or "").strip().lower()
            product_key = row.get("product_key")
            if alias and product_key:
                aliases[alias] = product_key
        return aliases

    def load_corporate_account_mappings(self, account_id: uuid.UUID) -> dict[str, uuid.UUID]:
        """
        Return the mappings that point at ``account_id``, keyed by trimmed
        lower-case corporate account name.
        """

        mappings: dict[str, uuid.UUID] = {}
        rows = self._rows.select_many(CORPORATE_ACCOUNT_MAPPINGS_TABLE, {"account_id": account_id})
        for row in rows:
            name = str(row.get("corporate_account_name") or "").strip().lower()
            if name:
                mappings[name] = row["account_id"]
        return mappings

"""
Table-oriented row store over SQLAlchemy Core.

The ingestion service only needs four operations (select one, select many,
bulk insert, filtered update), so it talks to this narrow interface instead
of an ORM session. Tables are looked up by name in the shared metadata.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import db.models  # noqa: F401  registers every table on Base.metadata
from db.base import Base
from db.repositories.errors import DatabaseError

logger = logging.getLogger(__name__)


class RowStore(Protocol):
    def select_one(self, table: str, filters: Mapping[str, Any]) -> dict[str, Any] | None:
        ...

    def select_many(self, table: str, filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        ...

    def insert_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        ...

    def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        ...


class SQLAlchemyRowStore:
    """
    RowStore backed by one SQLAlchemy session.

    Every write commits on success and rolls back before raising
    DatabaseError, so a failed chunk never leaves earlier chunks uncommitted.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def select_one(self, table: str, filters: Mapping[str, Any]) -> dict[str, Any] | None:
        target = _table(table)
        stmt = select(target).where(*_conditions(target, filters)).limit(1)
        try:
            row = self._session.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise DatabaseError(f"Select from {table} failed: {exc}") from exc
        return dict(row) if row is not None else None

    def select_many(self, table: str, filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        target = _table(table)
        stmt = select(target).where(*_conditions(target, filters))
        try:
            rows = self._session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise DatabaseError(f"Select from {table} failed: {exc}") from exc
        return [dict(row) for row in rows]

    def insert_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        if not rows:
            return 0
        target = _table(table)
        try:
            self._session.execute(insert(target), [dict(row) for row in rows])
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Bulk insert failed table=%s rows=%d", table, len(rows))
            raise DatabaseError(f"Insert into {table} failed: {exc}") from exc
        return len(rows)

    def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        target = _table(table)
        stmt = update(target).where(*_conditions(target, filters)).values(**patch)
        try:
            result = self._session.execute(stmt)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise DatabaseError(f"Update of {table} failed: {exc}") from exc
        return result.rowcount or 0


def _table(name: str) -> Table:
    try:
        return Base.metadata.tables[name]
    except KeyError as exc:
        raise DatabaseError(f"Unknown table: {name}") from exc


def _conditions(table: Table, filters: Mapping[str, Any]) -> list[Any]:
    conditions = []
    for column_name, value in filters.items():
        if column_name not in table.c:
            raise DatabaseError(f"Unknown column {table.name}.{column_name}")
        conditions.append(table.c[column_name] == value)
    return conditions

"""
Repository layer exports.
"""

from db.repositories.errors import (
    DatabaseError,
    InvalidObjectPathError,
    ObjectNotFoundError,
    PersistenceError,
    StorageError,
)
from db.repositories.row_store import RowStore, SQLAlchemyRowStore
from db.repositories.storage import LocalObjectStore, ObjectStore, normalize_object_path

__all__ = [
    "DatabaseError",
    "InvalidObjectPathError",
    "LocalObjectStore",
    "ObjectNotFoundError",
    "ObjectStore",
    "PersistenceError",
    "RowStore",
    "SQLAlchemyRowStore",
    "StorageError",
    "normalize_object_path",
]

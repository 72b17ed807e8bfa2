"""
Repository-layer exceptions for object storage and relational persistence.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """Base exception for storage adapter failures."""


class StorageError(PersistenceError):
    """Raised when reading, writing or deleting an uploaded object fails."""


class ObjectNotFoundError(StorageError):
    """Raised when no object exists at the requested path."""


class InvalidObjectPathError(StorageError):
    """Raised when a path escapes the storage root or is empty."""


class DatabaseError(PersistenceError):
    """Raised when a relational read or write fails."""

"""
Object storage abstractions for uploaded dataset files.

Paths are POSIX-style keys relative to the store root; the first segment is
the owning account id.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from db.repositories.errors import InvalidObjectPathError, ObjectNotFoundError, StorageError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """
    Minimal object store used by the ingestion pipeline.
    """

    def get(self, path: str) -> bytes:
        ...

    def put(self, path: str, content: bytes) -> None:
        ...

    def delete(self, path: str) -> None:
        ...


def normalize_object_path(path: str) -> str:
    """
    Validate a storage key and return it in canonical form.

    Raises InvalidObjectPathError for empty keys, absolute keys and keys
    containing parent-directory segments.
    """

    raw = (path or "").strip().replace("\\", "/")
    if not raw:
        raise InvalidObjectPathError("Storage path is empty.")
    candidate = PurePosixPath(raw)
    if candidate.is_absolute() or any(part == ".." for part in candidate.parts):
        raise InvalidObjectPathError(f"Storage path is not allowed: {path!r}")
    return candidate.as_posix()


class LocalObjectStore:
    """
    Filesystem-backed object store rooted at one directory.
    """

    def __init__(self, root_dir: str | Path = "data/datasets") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def _resolve(self, path: str) -> Path:
        return self._root_dir / normalize_object_path(path)

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(f"Object not found: {path}")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read object: {path}") from exc

    def put(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise StorageError(f"Failed to write object: {path}") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    logger.warning("Could not remove temp object path=%s", tmp_path)

        logger.debug("Stored object path=%s size_bytes=%d", path, len(content))

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete object: {path}") from exc

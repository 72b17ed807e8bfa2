"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.dataset_lifecycle import DatasetType
from db.config import load_env_files

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for dataset ingestion.

    fallback_dataset_type is the type recorded for uploads whose header row
    matches no known signature.
    """

    insert_batch_size: int = 500
    max_row_errors: int = 100
    log_row_errors: bool = False
    fallback_dataset_type: DatasetType = DatasetType.MANUAL_ADJUSTMENTS
    progress_log_every: int = 10_000


@dataclass(frozen=True)
class StorageSettings:
    root_dir: str = "data/datasets"


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())


def _parse_fallback_dataset_type(raw: str) -> DatasetType:
    try:
        dataset_type = DatasetType(raw.strip().lower())
    except ValueError:
        dataset_type = DatasetType.UNKNOWN
    if dataset_type is DatasetType.UNKNOWN:
        logger.warning(
            "Ignoring INGEST_FALLBACK_DATASET_TYPE=%r; using %s",
            raw,
            DatasetType.MANUAL_ADJUSTMENTS.value,
        )
        return DatasetType.MANUAL_ADJUSTMENTS
    return dataset_type


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return IngestionSettings(
        insert_batch_size=max(1, _get_int_env("INGEST_INSERT_BATCH_SIZE", 500)),
        max_row_errors=max(1, _get_int_env("INGEST_MAX_ROW_ERRORS", 100)),
        log_row_errors=_get_bool_env("INGEST_LOG_ROW_ERRORS", False),
        fallback_dataset_type=_parse_fallback_dataset_type(
            _get_str_env("INGEST_FALLBACK_DATASET_TYPE", DatasetType.MANUAL_ADJUSTMENTS.value)
        ),
        progress_log_every=max(1, _get_int_env("INGEST_PROGRESS_LOG_EVERY", 10_000)),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    return StorageSettings(root_dir=_get_str_env("DATASET_STORAGE_DIR", "data/datasets"))

"""
tests/conftest.py

Fixtures shared by the service and router tests.
"""

from __future__ import annotations

import uuid

import pytest

from app.config import IngestionSettings
from app.services.dataset_ingestion_service import DatasetIngestionService
from tests.fakes import InMemoryObjectStore, InMemoryRowStore


@pytest.fixture()
def account_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def row_store() -> InMemoryRowStore:
    return InMemoryRowStore()


@pytest.fixture()
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture()
def settings() -> IngestionSettings:
    return IngestionSettings(insert_batch_size=3, max_row_errors=100)


@pytest.fixture()
def service(
    row_store: InMemoryRowStore,
    object_store: InMemoryObjectStore,
    settings: IngestionSettings,
) -> DatasetIngestionService:
    return DatasetIngestionService(
        row_store=row_store,
        object_store=object_store,
        settings=settings,
    )

"""
app/api/dependencies.py

Shared FastAPI dependencies wiring request-scoped stores into services.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_ingestion_settings
from app.services.dataset_ingestion_service import DatasetIngestionService, get_object_store
from db.repositories.row_store import RowStore, SQLAlchemyRowStore
from db.repositories.storage import ObjectStore
from db.session import get_db


def get_row_store(db: Session = Depends(get_db)) -> RowStore:
    return SQLAlchemyRowStore(db)


def get_dataset_ingestion_service(
    row_store: RowStore = Depends(get_row_store),
    object_store: ObjectStore = Depends(get_object_store),
) -> DatasetIngestionService:
    """
    Build the ingestion service for one request around its database session.
    """

    return DatasetIngestionService(
        row_store=row_store,
        object_store=object_store,
        settings=get_ingestion_settings(),
    )

"""
app/main.py

FastAPI application factory for the dataset ingestion API.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_logging_settings

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = get_logging_settings().level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import get_session_factory

    try:
        db = get_session_factory()()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logger.critical(
            "Schema mismatch: %d table(s) absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema before serving traffic."""
    _check_db()
    logger.info("Database connectivity confirmed")
    _check_schema()
    logger.info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="Usage Dataset Ingest API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import datasets_router

    application.include_router(datasets_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()

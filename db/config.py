"""
Shared environment-driven database configuration helpers.
"""

from __future__ import annotations

import os
from pathlib import Path

_ENV_FILES: tuple[str, ...] = (".env", ".env.local")
_loaded = False


def load_env_files(*, force: bool = False) -> None:
    """
    Load KEY=VALUE pairs from `.env` and `.env.local` at the project root.

    Variables already present in the process environment win. Files are
    read once per process unless ``force`` is set.
    """

    global _loaded
    if _loaded and not force:
        return

    project_root = Path(__file__).resolve().parents[1]
    for filename in _ENV_FILES:
        env_path = project_root / filename
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if line.startswith("export "):
                line = line[len("export "):].strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value

    _loaded = True


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare postgres URLs to the psycopg (v3) driver form.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def resolve_database_url() -> str:
    """
    Resolve the database URL.

    Priority:
    1) DATABASE_URL
    2) SUPABASE_DB_URL (hosted Postgres connection string)
    3) LOCAL_DATABASE_URL
    """

    load_env_files()

    for name in ("DATABASE_URL", "SUPABASE_DB_URL", "LOCAL_DATABASE_URL"):
        value = os.getenv(name, "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, SUPABASE_DB_URL "
        "or LOCAL_DATABASE_URL."
    )

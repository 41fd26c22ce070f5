from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from app.config import settings
from app.models import swipe_record, workspace  # noqa: F401 - ensure models are registered

logger = logging.getLogger(__name__)

IN_MEMORY_DATABASE_URL = "sqlite://"


def build_engine(
    database_url: str | None = None,
    *,
    pool_min_size: int | None = None,
    pool_max_size: int | None = None,
) -> Engine:
    """Create a synchronous engine; falls back to a shared in-memory SQLite database."""
    resolved_url = database_url or settings.database_url or IN_MEMORY_DATABASE_URL
    parsed_url = make_url(resolved_url)
    sync_url, connect_args, drivername = _coerce_sync_database_url(parsed_url)
    engine_kwargs: dict[str, Any] = {"echo": False, "connect_args": connect_args}
    if drivername.startswith("sqlite"):
        if _is_memory_sqlite(parsed_url):
            engine_kwargs["poolclass"] = StaticPool
    else:
        pool_min = max(pool_min_size or settings.db_pool_min_size, 1)
        pool_max = max(pool_max_size or settings.db_pool_max_size, pool_min)
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = pool_min
        engine_kwargs["max_overflow"] = max(pool_max - pool_min, 0)
    engine = create_engine(sync_url, **engine_kwargs)
    logger.info(
        "database.engine.initialized",
        extra={"backend": _resolve_backend_tag(parsed_url, drivername)},
    )
    return engine


def init_database(engine: Engine) -> None:
    """Create any missing tables."""
    SQLModel.metadata.create_all(engine)
    logger.info("database.schema.ensured")


def check_database_health(engine: Engine) -> bool:
    """Check if database is accessible."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


def _is_memory_sqlite(url: URL) -> bool:
    return url.database in (None, "", ":memory:")


def _coerce_sync_database_url(url: URL) -> tuple[str, dict[str, Any], str]:
    """Convert async connection strings into sync SQLAlchemy URLs."""
    drivername = url.drivername
    connect_args: dict[str, Any] = {}
    if drivername.endswith("+asyncpg"):
        drivername = drivername.replace("+asyncpg", "+psycopg2")
    elif drivername.endswith("+aiosqlite"):
        drivername = drivername.replace("+aiosqlite", "")
    sync_url = url.set(drivername=drivername)
    query = dict(sync_url.query) if sync_url.query else {}
    removed_ssl = query.pop("ssl", None) is not None
    sync_url = sync_url.set(query=query)
    if drivername.startswith("postgresql") and removed_ssl and "sslmode" not in query:
        connect_args["sslmode"] = "require"
    if drivername.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return sync_url.render_as_string(hide_password=False), connect_args, drivername


def _resolve_backend_tag(url: URL, drivername: str) -> str:
    if drivername.startswith("sqlite"):
        return "memory" if _is_memory_sqlite(url) else "sqlite"
    return "postgres"

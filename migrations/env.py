"""Alembic environment configuration for workspace and swipe persistence."""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError
from sqlmodel import SQLModel

from app.config import settings
from app.core.database import build_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("fundraise_swipe.alembic")
logger.setLevel(logging.INFO)
target_metadata = SQLModel.metadata


def _log_database_url(url: str, source: str) -> None:
    try:
        rendered = make_url(url).render_as_string(hide_password=True)
    except ArgumentError:  # pragma: no cover - log only
        rendered = "<invalid DATABASE_URL>"
    logger.info("Alembic resolved DATABASE_URL from %s: %s", source, rendered)
    config.print_stdout(f"[Alembic] DATABASE_URL source={source}: {rendered}")


def _config_database_url() -> str | None:
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    runtime_section = config.get_section("alembic:runtime")
    if runtime_section:
        return runtime_section.get("sqlalchemy.url")
    return None


def _resolve_database_url() -> str:
    candidates = [
        ("environment variable", os.environ.get("DATABASE_URL")),
        ("alembic.ini", _config_database_url()),
        ("app settings", settings.database_url),
    ]
    for source, value in candidates:
        if not value:
            continue
        _log_database_url(value, source)
        return value
    raise RuntimeError("DATABASE_URL must be set to run migrations.")


def run_migrations_offline() -> None:
    """Run migrations offline (e.g., CI)."""
    url = _resolve_database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations with the same engine factory the API uses."""
    engine = build_engine(_resolve_database_url(), pool_min_size=1, pool_max_size=1)
    try:
        with engine.connect() as connection:
            do_run_migrations(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

"""Provision login users so a fresh database can be logged into by name."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError

from app.config import Settings
from app.services.swipes.repositories import build_swipe_repository
from app.services.workspaces.service import ensure_users

logger = logging.getLogger("scripts.seed_users")


def _render_database_url(url: str | None) -> str:
    if not url:
        return "<in-memory sqlite>"
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid DATABASE_URL>"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed Fundraise Swipe login users.")
    parser.add_argument(
        "names",
        nargs="*",
        help="User handles to create. Defaults to SEED_USERS from the environment.",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL (falls back to .env).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    local_settings = Settings()
    database_url = args.database_url or local_settings.database_url
    names = args.names or local_settings.seed_users
    if not names:
        logger.error("seed_users.no_names")
        return 1
    logger.info("Using DATABASE_URL=%s", _render_database_url(database_url))

    repository = build_swipe_repository(database_url)
    try:
        users = ensure_users(repository, names)
    finally:
        repository.dispose()
    for user in users:
        print(f"{user.name}\t{user.display_name}\t{user.id}")
    logger.info("seed_users.complete", extra={"count": len(users)})
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())

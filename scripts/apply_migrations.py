#!/usr/bin/env python
"""
Bring the household recipes database schema up to date.

Run with:
    python scripts/apply_migrations.py            # upgrade to head
    python scripts/apply_migrations.py 0001       # upgrade to a specific revision
    python scripts/apply_migrations.py --sql      # print the SQL instead of running it
"""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv

logger = logging.getLogger("apply_migrations")

REPO_ROOT = Path(__file__).resolve().parents[1]


def describe_database(url: str) -> str:
    """Database URL without credentials, for log lines."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}{parts.path}"


def build_config(database_url: str) -> Config:
    config = Config(str(REPO_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Apply household recipes schema migrations")
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--sql", action="store_true", help="emit SQL for the upgrade without touching the database")
    args = parser.parse_args(argv)

    env_path = REPO_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    # host-run migrations may point at a different address than the app container
    migrations_url = os.getenv("MIGRATIONS_DATABASE_URL")
    if migrations_url:
        os.environ["DATABASE_URL"] = migrations_url

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL is not set; nothing to migrate")
        return 1

    logger.info("Upgrading %s to %s", describe_database(database_url), args.revision)
    try:
        command.upgrade(build_config(database_url), args.revision, sql=args.sql)
    except Exception:
        logger.exception("Migration to %s failed", args.revision)
        return 1
    logger.info("Schema is at %s", args.revision)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())

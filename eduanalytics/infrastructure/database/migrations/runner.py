# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migration runner.

This module applies the migrations in versions/ programmatically, without
the alembic CLI. It shares the alembic_version table with the CLI, so both
can be used on the same database.

Example:
    from eduanalytics.infrastructure.database.migrations.runner import run_migrations

    applied = await run_migrations(database)
"""

import importlib
import logging
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.engine import Connection

from eduanalytics.infrastructure.database.connection import Database

logger = logging.getLogger(__name__)

# Migration files in order (must be maintained manually)
MIGRATIONS = [
    "001_initial_schema",
]


async def run_migrations(database: Database, target_revision: str | None = None) -> list[str]:
    """Apply pending migrations.

    Args:
        database: Database to migrate.
        target_revision: Revision to stop at. If None, applies all pending
            migrations.

    Returns:
        List of applied revision IDs, in order.
    """
    await _ensure_version_table(database)

    current_version = await _get_current_version(database)
    logger.info("Current migration version: %s", current_version or "None")

    pending = _get_pending_migrations(current_version, target_revision)
    if not pending:
        logger.info("No pending migrations")
        return []

    logger.info("Applying %d migrations: %s", len(pending), ", ".join(pending))

    applied = []
    for revision in pending:
        await _apply_migration(database, revision)
        applied.append(revision)
        logger.info("Applied migration: %s", revision)

    return applied


async def get_migration_status(database: Database) -> dict[str, Any]:
    """Get the migration status of a database.

    Returns:
        Dict with current version, latest version and pending migrations.
    """
    await _ensure_version_table(database)
    current_version = await _get_current_version(database)
    pending = _get_pending_migrations(current_version)

    return {
        "current_version": current_version,
        "latest_version": MIGRATIONS[-1] if MIGRATIONS else None,
        "pending_count": len(pending),
        "pending_migrations": pending,
    }


async def _ensure_version_table(database: Database) -> None:
    async with database.engine.begin() as conn:
        await conn.execute(
            text("""
                CREATE TABLE IF NOT EXISTS alembic_version (
                    version_num VARCHAR(128) NOT NULL,
                    CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num)
                )
            """)
        )


async def _get_current_version(database: Database) -> str | None:
    async with database.engine.connect() as conn:
        result = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
        row = result.fetchone()
        return row[0] if row else None


def _get_pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
) -> list[str]:
    """Get the revisions between the current version and the target."""
    if current_version is None:
        start_idx = 0
    elif current_version in MIGRATIONS:
        start_idx = MIGRATIONS.index(current_version) + 1
    else:
        logger.warning("Current version %s not in known migrations list", current_version)
        return []

    if target_revision is None:
        end_idx = len(MIGRATIONS)
    elif target_revision in MIGRATIONS:
        end_idx = MIGRATIONS.index(target_revision) + 1
    else:
        logger.warning("Target revision %s not found", target_revision)
        return []

    return MIGRATIONS[start_idx:end_idx]


async def _apply_migration(database: Database, revision: str) -> None:
    """Apply one migration and record it as the current version.

    Raises:
        ImportError: If the migration module cannot be imported.
        ValueError: If the module has no upgrade() function.
    """
    module_name = f"eduanalytics.infrastructure.database.migrations.versions.{revision}"
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ImportError(f"Cannot import migration {revision}: {e}") from e

    upgrade_fn: Callable[[], None] | None = getattr(module, "upgrade", None)
    if upgrade_fn is None:
        raise ValueError(f"Migration {revision} has no upgrade() function")

    async with database.engine.begin() as conn:
        await conn.run_sync(_run_upgrade_sync, upgrade_fn)
        await conn.execute(text("DELETE FROM alembic_version"))
        await conn.execute(
            text("INSERT INTO alembic_version (version_num) VALUES (:version)"),
            {"version": revision},
        )


def _run_upgrade_sync(connection: Connection, upgrade_fn: Callable[[], None]) -> None:
    """Run an upgrade function with alembic operations bound to a connection."""
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    context = MigrationContext.configure(connection)

    with context.begin_transaction():
        with Operations.context(context):
            upgrade_fn()

"""Schema migration framework for skis.

Migrations are version-keyed functions that transform the database schema
from one version to the next.  Each migration receives a raw
sqlite3.Connection and must be idempotent (IF NOT EXISTS / IF EXISTS).

The runner (``ensure_schema``):
  1. Reads the current schema version via PRAGMA user_version
  2. Opens a single BEGIN IMMEDIATE transaction
  3. Applies every pending migration in order
  4. Stamps the final user_version and commits
  5. Rolls the whole transaction back on any failure

Adding a new migration:
  1. Increment CURRENT_SCHEMA_VERSION in db_schema.py
  2. Add a function here: def migrate_v<N>_to_v<N+1>(conn) -> None
  3. Register it in MIGRATIONS: N: migrate_v<N>_to_v<N+1>
  4. Add a test in tests/migrations/test_migrations.py

Use execute(), never executescript(): executescript implicitly commits and
would break the all-or-nothing guarantee.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol

from skis.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_V1_STATEMENTS

logger = logging.getLogger(__name__)


class MigrationFn(Protocol):
    """Protocol for migration functions."""

    def __call__(self, conn: sqlite3.Connection) -> None: ...


# ---------------------------------------------------------------------------
# Migration registry
#
# Keys are the version being migrated FROM (the current user_version).
# {0: migrate_v0_to_v1} means "if user_version == 0, run this to get to 1".
# ---------------------------------------------------------------------------


def migrate_v0_to_v1(conn: sqlite3.Connection) -> None:
    """v0 → v1: initial schema.

    Changes:
      - tables issues, labels, issue_labels, comments, issue_links
      - FTS5 table issues_fts over title/body with sync triggers
      - case-insensitive unique index on labels.name
      - indexes on type, state, deleted_at, created_at, updated_at,
        comments.issue_id, link endpoints, issue_labels.label_id
    """
    for statement in SCHEMA_V1_STATEMENTS:
        conn.execute(statement)


MIGRATIONS: dict[int, MigrationFn] = {
    0: migrate_v0_to_v1,
}


# ---------------------------------------------------------------------------
# Migration runner
# ---------------------------------------------------------------------------


class MigrationError(Exception):
    """Raised when the schema cannot be brought up to date.

    The store is left at its previous version; callers should treat this as
    fatal for that store.
    """

    def __init__(self, from_version: int, to_version: int, cause: Exception) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.cause = cause
        super().__init__(f"Migration v{from_version} → v{to_version} failed: {cause}")


def get_schema_version(conn: sqlite3.Connection) -> int:
    result: int = conn.execute("PRAGMA user_version").fetchone()[0]
    return result


def ensure_schema(conn: sqlite3.Connection, target_version: int = CURRENT_SCHEMA_VERSION) -> int:
    """Apply all pending migrations up to *target_version* in one transaction.

    Args:
        conn: Open SQLite connection (PRAGMAs already set).
        target_version: Version to migrate to; defaults to CURRENT_SCHEMA_VERSION.

    Returns:
        Number of migrations applied (0 if already up to date).

    Raises:
        MigrationError: If the store is newer than *target_version*, a
            migration is missing from the registry, or any migration fails.
            Nothing is applied in any of these cases.
    """
    current = get_schema_version(conn)

    if current == target_version:
        return 0

    if current > target_version:
        msg = (
            f"Database schema v{current} is newer than this version of skis "
            f"(expects v{target_version}). Downgrade is not supported."
        )
        raise MigrationError(current, target_version, ValueError(msg))

    missing = [v for v in range(current, target_version) if v not in MIGRATIONS]
    if missing:
        version = missing[0]
        msg = (
            f"No migration registered for v{version} → v{version + 1}. "
            f"Database is at v{current}, target is v{target_version}."
        )
        raise MigrationError(version, version + 1, KeyError(msg))

    logger.info("Migrating schema v%d → v%d ...", current, target_version)
    version = current
    if conn.in_transaction:
        conn.commit()
    try:
        conn.execute("BEGIN IMMEDIATE")
        for version in range(current, target_version):
            logger.info("Applying migration v%d → v%d", version, version + 1)
            MIGRATIONS[version](conn)
        conn.execute(f"PRAGMA user_version = {int(target_version)}")
        conn.commit()
    except Exception as exc:
        conn.rollback()
        logger.error("Migration v%d → v%d failed: %s", version, version + 1, exc)
        raise MigrationError(version, version + 1, exc) from exc

    applied = target_version - current
    logger.info("Schema is now v%d (%d migration(s) applied).", target_version, applied)
    return applied

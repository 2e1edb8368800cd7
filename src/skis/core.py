"""Store handle, discovery and project configuration.

Convention-based discovery: each project has a ``.skis/`` directory
containing ``issues.db`` (SQLite), ``config.json`` and ``skis.log``.
``SkisDB`` is the single entry point both front ends use; it is composed
from the issue, label and comment/link mixins sharing one connection.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from skis.db_issues import IssuesMixin
from skis.db_labels import LabelsMixin
from skis.db_meta import MetaMixin
from skis.db_schema import CURRENT_SCHEMA_VERSION
from skis.errors import AlreadyInitializedError, NotARepositoryError
from skis.migrations import ensure_schema, get_schema_version
from skis.models import DEFAULT_LIMIT, Issue
from skis.types.core import ProjectConfig

logger = logging.getLogger(__name__)

__all__ = [
    "CONFIG_FILENAME",
    "DB_FILENAME",
    "SKIS_DIR_NAME",
    "Issue",
    "SkisDB",
    "find_skis_root",
    "init_store",
    "read_config",
    "write_config",
]

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

SKIS_DIR_NAME = ".skis"
DB_FILENAME = "issues.db"
CONFIG_FILENAME = "config.json"

VALID_DEFAULT_STATES: frozenset[str] = frozenset({"open", "closed", "all"})


def find_skis_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for a .skis/ directory.

    Returns the .skis/ directory path (not the project root).  Raises
    ``NotARepositoryError`` when no ancestor has one.
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / SKIS_DIR_NAME
        if candidate.is_dir():
            return candidate
    raise NotARepositoryError(current)


def default_config() -> ProjectConfig:
    return ProjectConfig(version=1, default_state="open", default_limit=DEFAULT_LIMIT, log_level="INFO")


def read_config(skis_dir: Path) -> ProjectConfig:
    """Read .skis/config.json merged over the defaults.

    A missing file yields the defaults; a corrupt file or bad value logs a
    warning and falls back to the default for what could not be read.
    """
    config = default_config()
    config_path = skis_dir / CONFIG_FILENAME
    if not config_path.exists():
        return config
    try:
        loaded = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return config
    if not isinstance(loaded, dict):
        logger.warning("Ignoring %s: expected a JSON object", config_path)
        return config

    config.update(loaded)  # type: ignore[typeddict-item]
    if config.get("default_state") not in VALID_DEFAULT_STATES:
        logger.warning("Unknown default_state %r in config, falling back to 'open'", config.get("default_state"))
        config["default_state"] = "open"
    limit = config.get("default_limit")
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
        logger.warning("Invalid default_limit %r in config, falling back to %d", limit, DEFAULT_LIMIT)
        config["default_limit"] = DEFAULT_LIMIT
    return config


def write_config(skis_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .skis/config.json."""
    config_path = skis_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


def init_store(root: Path) -> SkisDB:
    """Create ``root/.skis/`` with a default config and a current schema.

    Raises ``AlreadyInitializedError`` if the directory already exists.
    """
    skis_dir = Path(root) / SKIS_DIR_NAME
    if skis_dir.exists():
        raise AlreadyInitializedError(skis_dir)
    skis_dir.mkdir(parents=True)
    write_config(skis_dir, default_config())
    db = SkisDB(skis_dir / DB_FILENAME)
    db.initialize()
    logger.info("Initialized skis store at %s", skis_dir)
    return db


# ---------------------------------------------------------------------------
# SkisDB
# ---------------------------------------------------------------------------


class SkisDB(IssuesMixin, LabelsMixin, MetaMixin):
    """Direct SQLite operations. No daemon, no sync. Importable by CLI and dashboard."""

    def __init__(self, db_path: str | Path, *, check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def open_at(cls, skis_dir: Path, *, check_same_thread: bool = True) -> SkisDB:
        """Open the store inside an existing .skis/ directory and bring its schema up to date."""
        db_path = Path(skis_dir) / DB_FILENAME
        if not db_path.is_file():
            raise NotARepositoryError(skis_dir)
        db = cls(db_path, check_same_thread=check_same_thread)
        db.initialize()
        return db

    @classmethod
    def from_project(cls, start: Path | None = None) -> SkisDB:
        """Create a SkisDB by discovering .skis/ from *start* (or cwd)."""
        return cls.open_at(find_skis_root(start))

    def __enter__(self) -> SkisDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def skis_dir(self) -> Path:
        return self.db_path.parent

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> int:
        """Create tables (if new) or migrate (if existing).

        Returns the number of migrations applied.  Raises ``MigrationError``
        if the schema cannot be brought to CURRENT_SCHEMA_VERSION.
        """
        return ensure_schema(self.conn, CURRENT_SCHEMA_VERSION)

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        return get_schema_version(self.conn)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

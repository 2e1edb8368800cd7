"""Shared utilities and Protocol for DB mixins."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from skis.models import Issue


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _placeholders(count: int) -> str:
    return ",".join("?" * count)


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn,
    self.get_issue(), etc. without ``type: ignore`` on every call.
    Actual implementations are provided by SkisDB at composition time.
    """

    db_path: Path
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    def get_issue(self, issue_id: int) -> Issue: ...

    def _require_issue(self, issue_id: int) -> None: ...

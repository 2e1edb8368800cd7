"""LabelsMixin: label definitions and their attachment to issues.

Label names are unique case-insensitively (``labels.name`` is
``COLLATE NOCASE``), so every lookup by name below matches any casing.
Deleting a label removes its associations through the foreign-key cascade
and never touches the issues themselves.
"""

from __future__ import annotations

import logging
import sqlite3

from skis.colors import generate_color, validate_color
from skis.db_base import DBMixinProtocol
from skis.errors import InvalidInputError, LabelExistsError, LabelNotFoundError
from skis.models import Label
from skis.validation import sanitize_label_name

logger = logging.getLogger(__name__)


def _row_to_label(row: sqlite3.Row) -> Label:
    return Label(id=row["id"], name=row["name"], description=row["description"], color=row["color"])


class LabelsMixin(DBMixinProtocol):
    """Label CRUD plus attach/detach.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``SkisDB`` at composition time via MRO.
    """

    def create_label(self, name: str, *, description: str | None = None, color: str | None = None) -> Label:
        """Create a label; without *color* one is generated from the name."""
        cleaned, err = sanitize_label_name(name)
        if err:
            raise InvalidInputError(err)
        final_color = validate_color(color) if color is not None else generate_color(cleaned)

        if self.conn.execute("SELECT 1 FROM labels WHERE name = ?", (cleaned,)).fetchone() is not None:
            raise LabelExistsError(cleaned)

        try:
            cursor = self.conn.execute(
                "INSERT INTO labels (name, description, color) VALUES (?, ?, ?)",
                (cleaned, description or None, final_color),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as exc:
            self.conn.rollback()
            raise LabelExistsError(cleaned) from exc
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Created label %r (%s)", cleaned, final_color)
        label_id = cursor.lastrowid
        if label_id is None:  # pragma: no cover
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return Label(id=label_id, name=cleaned, description=description or None, color=final_color)

    def get_label(self, name: str) -> Label:
        row = self.conn.execute("SELECT * FROM labels WHERE name = ?", (name.strip(),)).fetchone()
        if row is None:
            raise LabelNotFoundError(name)
        return _row_to_label(row)

    def list_labels(self) -> list[Label]:
        rows = self.conn.execute("SELECT * FROM labels ORDER BY name COLLATE NOCASE").fetchall()
        return [_row_to_label(r) for r in rows]

    def delete_label(self, name: str) -> None:
        try:
            cursor = self.conn.execute("DELETE FROM labels WHERE name = ?", (name.strip(),))
            if cursor.rowcount == 0:
                raise LabelNotFoundError(name)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        logger.debug("Deleted label %r", name)

    def get_issue_labels(self, issue_id: int) -> list[Label]:
        self._require_issue(issue_id)
        rows = self.conn.execute(
            "SELECT l.* FROM labels l JOIN issue_labels il ON il.label_id = l.id "
            "WHERE il.issue_id = ? ORDER BY l.name COLLATE NOCASE",
            (issue_id,),
        ).fetchall()
        return [_row_to_label(r) for r in rows]

    def add_label(self, issue_id: int, name: str) -> bool:
        """Attach label *name* to an issue.  Returns False if it was already attached."""
        self._require_issue(issue_id)
        label = self.get_label(name)
        try:
            cursor = self.conn.execute(
                "INSERT OR IGNORE INTO issue_labels (issue_id, label_id) VALUES (?, ?)",
                (issue_id, label.id),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return cursor.rowcount > 0

    def remove_label(self, issue_id: int, name: str) -> bool:
        """Detach label *name*.  Returns False if it was not attached (or does not exist)."""
        self._require_issue(issue_id)
        try:
            cursor = self.conn.execute(
                "DELETE FROM issue_labels WHERE issue_id = ? AND label_id IN (SELECT id FROM labels WHERE name = ?)",
                (issue_id, name.strip()),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return cursor.rowcount > 0

    def _resolve_label_ids(self, names: list[str]) -> list[int]:
        """Map names to label ids, de-duplicated, in first-seen order.

        Raises ``LabelNotFoundError`` for the first unknown name.
        """
        ids: list[int] = []
        for name in names:
            row = self.conn.execute("SELECT id FROM labels WHERE name = ?", (name.strip(),)).fetchone()
            if row is None:
                raise LabelNotFoundError(name)
            if row["id"] not in ids:
                ids.append(row["id"])
        return ids

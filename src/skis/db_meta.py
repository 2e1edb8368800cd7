"""MetaMixin: comments and issue links.

All methods access ``self.conn``, ``self._require_issue()``, etc. via
Python's MRO when composed into ``SkisDB``.
"""

from __future__ import annotations

import logging
import sqlite3

from skis.db_base import DBMixinProtocol, _now_iso
from skis.errors import CommentNotFoundError, DuplicateLinkError, InvalidInputError, SelfLinkError
from skis.models import Comment, IssueLink
from skis.validation import sanitize_comment_body

logger = logging.getLogger(__name__)


def _row_to_comment(row: sqlite3.Row) -> Comment:
    return Comment(
        id=row["id"],
        issue_id=row["issue_id"],
        body=row["body"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class MetaMixin(DBMixinProtocol):
    """Comments and bidirectional links between issues.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``SkisDB`` at composition time via MRO.
    """

    # -- Comments ------------------------------------------------------------

    def add_comment(self, issue_id: int, body: str) -> Comment:
        """Add a comment.  Deleted issues can still be commented on."""
        cleaned, err = sanitize_comment_body(body)
        if err:
            raise InvalidInputError(err)
        self._require_issue(issue_id)
        now = _now_iso()
        try:
            cursor = self.conn.execute(
                "INSERT INTO comments (issue_id, body, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (issue_id, cleaned, now, now),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        rowid = cursor.lastrowid
        if rowid is None:  # pragma: no cover
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        logger.debug("Added comment #%d to issue #%d", rowid, issue_id)
        return self.get_comment(rowid)

    def get_comment(self, comment_id: int) -> Comment:
        row = self.conn.execute("SELECT * FROM comments WHERE id = ?", (comment_id,)).fetchone()
        if row is None:
            raise CommentNotFoundError(comment_id)
        return _row_to_comment(row)

    def get_comments(self, issue_id: int) -> list[Comment]:
        """Comments on an issue in creation order."""
        self._require_issue(issue_id)
        rows = self.conn.execute(
            "SELECT * FROM comments WHERE issue_id = ? ORDER BY created_at, id",
            (issue_id,),
        ).fetchall()
        return [_row_to_comment(r) for r in rows]

    def update_comment(self, comment_id: int, body: str) -> Comment:
        cleaned, err = sanitize_comment_body(body)
        if err:
            raise InvalidInputError(err)
        try:
            cursor = self.conn.execute(
                "UPDATE comments SET body = ?, updated_at = ? WHERE id = ?",
                (cleaned, _now_iso(), comment_id),
            )
            if cursor.rowcount == 0:
                raise CommentNotFoundError(comment_id)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return self.get_comment(comment_id)

    def delete_comment(self, comment_id: int) -> None:
        try:
            cursor = self.conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
            if cursor.rowcount == 0:
                raise CommentNotFoundError(comment_id)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        logger.debug("Deleted comment #%d", comment_id)

    # -- Links ---------------------------------------------------------------

    def add_link(self, issue_a: int, issue_b: int) -> IssueLink:
        """Link two issues.  Argument order does not matter."""
        if issue_a == issue_b:
            raise SelfLinkError(issue_a)
        self._require_issue(issue_a)
        self._require_issue(issue_b)
        low, high = min(issue_a, issue_b), max(issue_a, issue_b)

        existing = self.conn.execute(
            "SELECT 1 FROM issue_links WHERE issue_a_id = ? AND issue_b_id = ?",
            (low, high),
        ).fetchone()
        if existing is not None:
            raise DuplicateLinkError(low, high)

        now = _now_iso()
        try:
            self.conn.execute(
                "INSERT INTO issue_links (issue_a_id, issue_b_id, created_at) VALUES (?, ?, ?)",
                (low, high, now),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as exc:
            self.conn.rollback()
            raise DuplicateLinkError(low, high) from exc
        except Exception:
            self.conn.rollback()
            raise
        logger.debug("Linked issues #%d and #%d", low, high)
        return IssueLink(issue_a_id=low, issue_b_id=high, created_at=now)

    def remove_link(self, issue_a: int, issue_b: int) -> bool:
        """Remove the link between two issues.  Returns False if there was none."""
        low, high = min(issue_a, issue_b), max(issue_a, issue_b)
        try:
            cursor = self.conn.execute(
                "DELETE FROM issue_links WHERE issue_a_id = ? AND issue_b_id = ?",
                (low, high),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return cursor.rowcount > 0

    def linked_issues(self, issue_id: int) -> list[int]:
        """Partner ids of *issue_id*, ascending, whichever side they are stored on."""
        rows = self.conn.execute(
            "SELECT CASE WHEN issue_a_id = ? THEN issue_b_id ELSE issue_a_id END AS other "
            "FROM issue_links WHERE issue_a_id = ? OR issue_b_id = ? ORDER BY other",
            (issue_id, issue_id, issue_id),
        ).fetchall()
        return [r["other"] for r in rows]

    def get_links(self, issue_id: int) -> list[IssueLink]:
        rows = self.conn.execute(
            "SELECT * FROM issue_links WHERE issue_a_id = ? OR issue_b_id = ? ORDER BY issue_a_id, issue_b_id",
            (issue_id, issue_id),
        ).fetchall()
        return [IssueLink(issue_a_id=r["issue_a_id"], issue_b_id=r["issue_b_id"], created_at=r["created_at"]) for r in rows]

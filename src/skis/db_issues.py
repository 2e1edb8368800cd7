"""IssuesMixin: issue CRUD, lifecycle transitions, listing and search.

All methods access ``self.conn``, ``self.get_issue()``, etc. via Python's
MRO when composed into ``SkisDB``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from skis.db_base import DBMixinProtocol, _now_iso, _placeholders
from skis.errors import InvalidInputError, InvalidStateTransitionError, IssueNotFoundError
from skis.models import Issue, IssueFilter, parse_issue_type, parse_state_reason
from skis.query import build_issue_select, sanitize_fts_query
from skis.validation import sanitize_comment_body, sanitize_title

if TYPE_CHECKING:
    from skis.models import IssueType, StateReason

logger = logging.getLogger(__name__)


class IssuesMixin(DBMixinProtocol):
    """Issue CRUD, close/reopen, soft delete, list and search.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``SkisDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:

        def _resolve_label_ids(self, names: list[str]) -> list[int]: ...

    # -- Reads ---------------------------------------------------------------

    def get_issue(self, issue_id: int) -> Issue:
        """Return the issue with *issue_id*, soft-deleted or not."""
        issues = self._build_issues_batch([issue_id])
        if not issues:
            raise IssueNotFoundError(issue_id)
        return issues[0]

    def _require_issue(self, issue_id: int) -> None:
        row = self.conn.execute("SELECT 1 FROM issues WHERE id = ?", (issue_id,)).fetchone()
        if row is None:
            raise IssueNotFoundError(issue_id)

    def _build_issues_batch(self, issue_ids: list[int]) -> list[Issue]:
        """Build multiple Issues with batched label and link queries, preserving input order."""
        if not issue_ids:
            return []

        placeholders = _placeholders(len(issue_ids))

        rows_by_id: dict[int, sqlite3.Row] = {}
        for r in self.conn.execute(f"SELECT * FROM issues WHERE id IN ({placeholders})", issue_ids).fetchall():
            rows_by_id[r["id"]] = r

        labels_by_id: dict[int, list[str]] = {iid: [] for iid in issue_ids}
        for r in self.conn.execute(
            "SELECT il.issue_id, l.name FROM issue_labels il JOIN labels l ON l.id = il.label_id "
            f"WHERE il.issue_id IN ({placeholders}) ORDER BY l.name COLLATE NOCASE",
            issue_ids,
        ).fetchall():
            labels_by_id[r["issue_id"]].append(r["name"])

        links_by_id: dict[int, list[int]] = {iid: [] for iid in issue_ids}
        for r in self.conn.execute(
            f"SELECT issue_a_id, issue_b_id FROM issue_links WHERE issue_a_id IN ({placeholders}) OR issue_b_id IN ({placeholders})",
            [*issue_ids, *issue_ids],
        ).fetchall():
            a, b = r["issue_a_id"], r["issue_b_id"]
            if a in links_by_id:
                links_by_id[a].append(b)
            if b in links_by_id:
                links_by_id[b].append(a)

        result: list[Issue] = []
        for iid in issue_ids:
            row = rows_by_id.get(iid)
            if row is None:
                continue
            result.append(
                Issue(
                    id=row["id"],
                    title=row["title"],
                    body=row["body"],
                    type=row["type"],
                    state=row["state"],
                    state_reason=row["state_reason"],
                    created_at=row["created_at"],
                    updated_at=row["updated_at"],
                    closed_at=row["closed_at"],
                    deleted_at=row["deleted_at"],
                    labels=labels_by_id[iid],
                    links=sorted(links_by_id[iid]),
                )
            )
        return result

    def list_issues(self, flt: IssueFilter | None = None) -> list[Issue]:
        """Issues matching *flt* (default: non-deleted, most recently updated first)."""
        sql, params = build_issue_select(flt or IssueFilter())
        rows = self.conn.execute(sql, params).fetchall()
        return self._build_issues_batch([r["id"] for r in rows])

    def search_issues(self, query: str, flt: IssueFilter | None = None) -> list[Issue]:
        """Full-text search over title and body, combined with *flt*.

        Results follow the filter's sort order; there is no relevance ranking.
        """
        fts_query = sanitize_fts_query(query)
        if not fts_query:
            return []
        sql, params = build_issue_select(flt or IssueFilter(), fts_query=fts_query)
        rows = self.conn.execute(sql, params).fetchall()
        return self._build_issues_batch([r["id"] for r in rows])

    # -- Writes --------------------------------------------------------------

    def create_issue(
        self,
        title: str,
        *,
        body: str | None = None,
        type: str = "task",
        labels: list[str] | None = None,
    ) -> Issue:
        """Create an open issue, attaching *labels* in the same transaction.

        Every label must already exist (matched case-insensitively); the first
        missing one raises ``LabelNotFoundError`` before anything is written.
        """
        cleaned, err = sanitize_title(title)
        if err:
            raise InvalidInputError(err)
        issue_type: IssueType = parse_issue_type(type)
        label_ids = self._resolve_label_ids(labels or [])
        now = _now_iso()

        try:
            cursor = self.conn.execute(
                "INSERT INTO issues (title, body, type, state, created_at, updated_at) VALUES (?, ?, ?, 'open', ?, ?)",
                (cleaned, body or None, issue_type, now, now),
            )
            issue_id = cursor.lastrowid
            if issue_id is None:  # pragma: no cover
                msg = "INSERT did not produce a lastrowid"
                raise RuntimeError(msg)
            self.conn.executemany(
                "INSERT OR IGNORE INTO issue_labels (issue_id, label_id) VALUES (?, ?)",
                [(issue_id, label_id) for label_id in label_ids],
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Created issue #%d (%s) with %d label(s)", issue_id, issue_type, len(label_ids))
        return self.get_issue(issue_id)

    def update_issue(
        self,
        issue_id: int,
        *,
        title: str | None = None,
        body: str | None = None,
        type: str | None = None,
    ) -> Issue:
        """Apply the supplied fields.  Passing none of them is a no-op.

        An empty *body* clears the body.
        """
        self._require_issue(issue_id)

        sets: list[str] = []
        params: list[object] = []
        if title is not None:
            cleaned, err = sanitize_title(title)
            if err:
                raise InvalidInputError(err)
            sets.append("title = ?")
            params.append(cleaned)
        if body is not None:
            sets.append("body = ?")
            params.append(body or None)
        if type is not None:
            sets.append("type = ?")
            params.append(parse_issue_type(type))

        if not sets:
            return self.get_issue(issue_id)

        sets.append("updated_at = ?")
        params.append(_now_iso())
        params.append(issue_id)
        try:
            self.conn.execute(f"UPDATE issues SET {', '.join(sets)} WHERE id = ?", params)  # noqa: S608
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Updated issue #%d", issue_id)
        return self.get_issue(issue_id)

    def close_issue(self, issue_id: int, *, reason: str = "completed", comment: str | None = None) -> Issue:
        """Close an open issue, optionally adding *comment* in the same transaction."""
        state_reason: StateReason = parse_state_reason(reason)
        comment_body: str | None = None
        if comment is not None:
            comment_body, err = sanitize_comment_body(comment)
            if err:
                raise InvalidInputError(err)

        current = self.get_issue(issue_id)
        if current.state == "closed":
            raise InvalidStateTransitionError(issue_id, "closed")

        now = _now_iso()
        try:
            self.conn.execute(
                "UPDATE issues SET state = 'closed', state_reason = ?, closed_at = ?, updated_at = ? WHERE id = ? AND state = 'open'",
                (state_reason, now, now, issue_id),
            )
            if comment_body is not None:
                self.conn.execute(
                    "INSERT INTO comments (issue_id, body, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    (issue_id, comment_body, now, now),
                )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Closed issue #%d as %s", issue_id, state_reason)
        return self.get_issue(issue_id)

    def reopen_issue(self, issue_id: int) -> Issue:
        """Reopen a closed issue, clearing its state reason and closed_at."""
        current = self.get_issue(issue_id)
        if current.state == "open":
            raise InvalidStateTransitionError(issue_id, "open")

        try:
            self.conn.execute(
                "UPDATE issues SET state = 'open', state_reason = NULL, closed_at = NULL, updated_at = ? WHERE id = ?",
                (_now_iso(), issue_id),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Reopened issue #%d", issue_id)
        return self.get_issue(issue_id)

    def delete_issue(self, issue_id: int) -> Issue:
        """Soft-delete an issue.  Deleting twice keeps the first deleted_at."""
        self._require_issue(issue_id)
        now = _now_iso()
        try:
            self.conn.execute(
                "UPDATE issues SET deleted_at = COALESCE(deleted_at, ?), updated_at = ? WHERE id = ?",
                (now, now, issue_id),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Deleted issue #%d", issue_id)
        return self.get_issue(issue_id)

    def restore_issue(self, issue_id: int) -> Issue:
        self._require_issue(issue_id)
        try:
            self.conn.execute(
                "UPDATE issues SET deleted_at = NULL, updated_at = ? WHERE id = ?",
                (_now_iso(), issue_id),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

        logger.debug("Restored issue #%d", issue_id)
        return self.get_issue(issue_id)

"""Issue query builder shared by list and search.

``build_issue_select`` turns an ``IssueFilter`` (plus an optional FTS5 match
expression) into one ``SELECT i.id ...`` statement and its parameter list.
The caller hydrates the returned ids with ``_build_issues_batch``.

Label filtering has three shapes:

* no labels: plain predicates on ``issues``
* one label: a join through ``issue_labels``/``labels``; label names are
  unique so the join cannot multiply rows
* two or more labels: a correlated ``COUNT(DISTINCT label id)`` over the
  issue's associations restricted to the requested names, which must equal
  the number of distinct requested names (AND semantics)
"""

from __future__ import annotations

import re
from typing import Any

from skis.db_base import _placeholders
from skis.models import IssueFilter

_SORT_COLUMNS = {
    "updated": "i.updated_at",
    "created": "i.created_at",
    "id": "i.id",
}


def sanitize_fts_query(query: str) -> str:
    """Turn free text into a safe FTS5 expression.

    Strips everything but word characters and whitespace, quotes each token
    as a prefix match and ANDs them: ``fix login!`` -> ``"fix"* AND "login"*``.
    Returns ``""`` when nothing searchable is left.
    """
    sanitized = re.sub(r"[^\w\s]", " ", query)
    tokens = [t for t in sanitized.split() if t]
    return " AND ".join(f'"{t}"*' for t in tokens)


def build_issue_select(flt: IssueFilter, *, fts_query: str | None = None) -> tuple[str, list[Any]]:
    """Compose the id query for *flt*.  Returns ``(sql, params)``."""
    joins: list[str] = []
    conditions: list[str] = []
    params: list[Any] = []

    if fts_query is not None:
        joins.append("JOIN issues_fts ON issues_fts.rowid = i.id")
        conditions.append("issues_fts MATCH ?")
        params.append(fts_query)

    labels = flt.distinct_labels()
    if len(labels) == 1:
        joins.append("JOIN issue_labels il ON il.issue_id = i.id JOIN labels l ON l.id = il.label_id")
        # labels.name is COLLATE NOCASE
        conditions.append("l.name = ?")
        params.append(labels[0])
    elif len(labels) > 1:
        conditions.append(
            "(SELECT COUNT(DISTINCT l.id) FROM issue_labels il "
            "JOIN labels l ON l.id = il.label_id "
            f"WHERE il.issue_id = i.id AND l.name IN ({_placeholders(len(labels))})) = ?"
        )
        params.extend(labels)
        params.append(len(labels))

    if flt.state is not None:
        conditions.append("i.state = ?")
        params.append(flt.state)
    if flt.type is not None:
        conditions.append("i.type = ?")
        params.append(flt.type)
    if not flt.include_deleted:
        conditions.append("i.deleted_at IS NULL")

    join_sql = f" {' '.join(joins)}" if joins else ""
    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""

    direction = "ASC" if flt.sort_order == "asc" else "DESC"
    order = f"{_SORT_COLUMNS[flt.sort_by]} {direction}"
    if flt.sort_by != "id":
        order += ", i.id ASC"

    params.extend([flt.limit, flt.offset])
    sql = f"SELECT i.id FROM issues i{join_sql}{where} ORDER BY {order} LIMIT ? OFFSET ?"  # noqa: S608
    return sql, params

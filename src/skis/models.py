"""Entity model: issues, labels, comments, links, and their enumerated fields."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Literal, cast

from skis.errors import InvalidEnumError
from skis.types.core import CommentDict, ISOTimestamp, IssueDict, LabelDict, LinkDict

# ---------------------------------------------------------------------------
# Constrained-string Literal types
# ---------------------------------------------------------------------------

IssueType = Literal["epic", "task", "bug", "request"]
IssueState = Literal["open", "closed"]
StateReason = Literal["completed", "not_planned"]
SortField = Literal["updated", "created", "id"]
SortOrder = Literal["asc", "desc"]

# Ordered for help text and error messages.
ISSUE_TYPES: tuple[str, ...] = ("epic", "task", "bug", "request")
ISSUE_STATES: tuple[str, ...] = ("open", "closed")
STATE_REASONS: tuple[str, ...] = ("completed", "not_planned")
SORT_FIELDS: tuple[str, ...] = ("updated", "created", "id")
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")

_STATE_REASON_ALIASES = {"notplanned": "not_planned", "not-planned": "not_planned"}

# SQLite NOCASE folds ASCII letters only.
_NOCASE_FOLD = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

DEFAULT_LIMIT = 30


def _parse_choice(field_name: str, value: object, allowed: tuple[str, ...]) -> str:
    if not isinstance(value, str):
        raise InvalidEnumError(field_name, value, list(allowed))
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise InvalidEnumError(field_name, value, list(allowed))
    return normalized


def parse_issue_type(value: object) -> IssueType:
    """Parse an issue type case-insensitively (``"BUG"`` -> ``"bug"``)."""
    return cast(IssueType, _parse_choice("issue type", value, ISSUE_TYPES))


def parse_issue_state(value: object) -> IssueState:
    return cast(IssueState, _parse_choice("state", value, ISSUE_STATES))


def parse_state_reason(value: object) -> StateReason:
    if isinstance(value, str):
        value = _STATE_REASON_ALIASES.get(value.strip().lower(), value)
    return cast(StateReason, _parse_choice("state reason", value, STATE_REASONS))


def parse_sort_field(value: object) -> SortField:
    return cast(SortField, _parse_choice("sort field", value, SORT_FIELDS))


def parse_sort_order(value: object) -> SortOrder:
    return cast(SortOrder, _parse_choice("sort order", value, SORT_ORDERS))


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Issue:
    id: int
    title: str
    body: str | None = None
    type: IssueType = "task"
    state: IssueState = "open"
    state_reason: StateReason | None = None
    created_at: str = ""
    updated_at: str = ""
    closed_at: str | None = None
    deleted_at: str | None = None
    # Computed (not stored on the issues row)
    labels: list[str] = field(default_factory=list)
    links: list[int] = field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> IssueDict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "type": self.type,
            "state": self.state,
            "state_reason": self.state_reason,
            "created_at": ISOTimestamp(self.created_at),
            "updated_at": ISOTimestamp(self.updated_at),
            "closed_at": ISOTimestamp(self.closed_at) if self.closed_at else None,
            "deleted_at": ISOTimestamp(self.deleted_at) if self.deleted_at else None,
            "labels": self.labels,
            "links": self.links,
        }


@dataclass
class Label:
    id: int
    name: str
    description: str | None = None
    color: str = ""

    def to_dict(self) -> LabelDict:
        # The internal id is not part of the wire shape.
        return {"name": self.name, "description": self.description, "color": self.color}


@dataclass
class Comment:
    id: int
    issue_id: int
    body: str
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> CommentDict:
        return {
            "id": self.id,
            "issue_id": self.issue_id,
            "body": self.body,
            "created_at": ISOTimestamp(self.created_at),
            "updated_at": ISOTimestamp(self.updated_at),
        }


@dataclass
class IssueLink:
    """An unordered pair of issues, stored smaller id first."""

    issue_a_id: int
    issue_b_id: int
    created_at: str = ""

    def other(self, issue_id: int) -> int:
        """Return the partner of *issue_id* in this link."""
        return self.issue_b_id if issue_id == self.issue_a_id else self.issue_a_id

    def to_dict(self) -> LinkDict:
        return {
            "issue_a_id": self.issue_a_id,
            "issue_b_id": self.issue_b_id,
            "created_at": ISOTimestamp(self.created_at),
        }


@dataclass
class IssueFilter:
    """Filter, sort and pagination criteria for list and search.

    ``state=None`` means all states.  ``labels`` use AND semantics: an issue
    must carry every named label (matched case-insensitively).  Enumerated
    fields are normalized on construction; bad values raise
    ``InvalidEnumError``.
    """

    state: IssueState | None = None
    type: IssueType | None = None
    labels: list[str] = field(default_factory=list)
    include_deleted: bool = False
    sort_by: SortField = "updated"
    sort_order: SortOrder = "desc"
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if self.state is not None:
            self.state = parse_issue_state(self.state)
        if self.type is not None:
            self.type = parse_issue_type(self.type)
        self.sort_by = parse_sort_field(self.sort_by)
        self.sort_order = parse_sort_order(self.sort_order)
        self.labels = list(self.labels)
        if self.limit < 0:
            self.limit = DEFAULT_LIMIT
        if self.offset < 0:
            self.offset = 0

    def distinct_labels(self) -> list[str]:
        """Requested label names, de-duplicated as SQLite NOCASE compares them, first spelling wins."""
        seen: set[str] = set()
        result: list[str] = []
        for name in self.labels:
            stripped = name.strip()
            key = stripped.translate(_NOCASE_FOLD)
            if not stripped or key in seen:
                continue
            seen.add(key)
            result.append(stripped)
        return result

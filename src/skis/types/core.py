# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin: that would create circular imports.
"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .skis/config.json."""

    version: int
    default_state: str
    default_limit: int
    log_level: str


class IssueDict(TypedDict):
    id: int
    title: str
    body: str | None
    type: str
    state: str
    state_reason: str | None
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    closed_at: ISOTimestamp | None
    deleted_at: ISOTimestamp | None
    labels: list[str]
    links: list[int]


class LabelDict(TypedDict):
    name: str
    description: str | None
    color: str


class CommentDict(TypedDict):
    id: int
    issue_id: int
    body: str
    created_at: ISOTimestamp
    updated_at: ISOTimestamp


class LinkDict(TypedDict):
    issue_a_id: int
    issue_b_id: int
    created_at: ISOTimestamp

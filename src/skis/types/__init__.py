# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin: that would create circular imports.
"""Typed return-value contracts for the skis core and API layers."""

from __future__ import annotations

from skis.types.core import (
    CommentDict,
    ISOTimestamp,
    IssueDict,
    LabelDict,
    LinkDict,
    ProjectConfig,
)

__all__ = [
    "CommentDict",
    "ISOTimestamp",
    "IssueDict",
    "LabelDict",
    "LinkDict",
    "ProjectConfig",
]

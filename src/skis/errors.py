"""Typed errors raised by the skis store.

Every error carries a stable ``code`` that both front ends use for rendering
(CLI JSON output, dashboard error envelopes).  The bases double as the
builtin exceptions callers already catch: "not found" errors are
``KeyError``s and every rejection of caller input is a ``ValueError``.

Storage failures are not wrapped: ``sqlite3.Error`` and ``OSError``
propagate unchanged.  Schema migration failures surface as
``skis.migrations.MigrationError``.
"""

from __future__ import annotations


class SkisError(Exception):
    """Base class for all expected skis failures."""

    code = "error"

    def __str__(self) -> str:
        # KeyError.__str__ repr()s its argument; keep messages readable.
        return str(self.args[0]) if self.args else self.__class__.__name__


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(SkisError, KeyError):
    code = "not_found"


class NotARepositoryError(NotFoundError):
    def __init__(self, start: object | None = None) -> None:
        where = f" (searched from {start})" if start is not None else ""
        super().__init__(f"Not a skis repository (or any parent up to /){where}. Run 'skis init' to create one.")


class IssueNotFoundError(NotFoundError):
    def __init__(self, issue_id: int) -> None:
        self.issue_id = issue_id
        super().__init__(f"Issue #{issue_id} not found")


class CommentNotFoundError(NotFoundError):
    def __init__(self, comment_id: int) -> None:
        self.comment_id = comment_id
        super().__init__(f"Comment #{comment_id} not found")


class LabelNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Label '{name}' not found. Create it with: skis label create {name}")


# ---------------------------------------------------------------------------
# Already exists
# ---------------------------------------------------------------------------


class AlreadyExistsError(SkisError, ValueError):
    code = "already_exists"


class AlreadyInitializedError(AlreadyExistsError):
    def __init__(self, path: object) -> None:
        super().__init__(f"Already initialized: {path}")


class LabelExistsError(AlreadyExistsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Label '{name}' already exists")


class DuplicateLinkError(AlreadyExistsError):
    def __init__(self, a: int, b: int) -> None:
        self.pair = (a, b)
        super().__init__(f"Link already exists between issues #{a} and #{b}")


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------


class InvalidInputError(SkisError, ValueError):
    code = "invalid_input"


class InvalidColorError(InvalidInputError):
    def __init__(self, color: str) -> None:
        self.color = color
        super().__init__(f"Invalid color '{color}': must be 6 hex characters (e.g., ff0000)")


class InvalidEnumError(InvalidInputError):
    """A value outside one of the enumerated field domains."""

    def __init__(self, field: str, value: object, allowed: list[str]) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} '{value}': must be one of {', '.join(allowed)}")


class SelfLinkError(InvalidInputError):
    def __init__(self, issue_id: int) -> None:
        self.issue_id = issue_id
        super().__init__("Cannot link issue to itself")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class InvalidStateTransitionError(SkisError, ValueError):
    code = "invalid_transition"

    def __init__(self, issue_id: int, state: str) -> None:
        self.issue_id = issue_id
        self.state = state
        super().__init__(f"Issue #{issue_id} is already {state}")

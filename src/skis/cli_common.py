"""Shared CLI helpers used by every ``cli_commands`` module.

Provides ``get_db()`` (discovery, config, logging, command timing), error
output, body resolution for ``--body``/``--body-file``/``--editor`` and a
few rendering helpers.
"""

from __future__ import annotations

import json as json_mod
import logging
import sys
import time
from datetime import UTC, datetime
from typing import IO, Any, NoReturn

import click

from skis.core import SkisDB, find_skis_root, read_config
from skis.errors import NotARepositoryError, SkisError
from skis.logging import setup_logging
from skis.migrations import MigrationError

logger = logging.getLogger("skis.cli")

_TYPE_COLORS = {"epic": "magenta", "task": "blue", "bug": "red", "request": "cyan"}
_STATE_COLORS = {"open": "green", "closed": "red"}


def get_db() -> SkisDB:
    """Discover .skis/ and return an opened SkisDB.

    Also attaches the JSON log handler and schedules a timing record for the
    running command.  Exits 1 when no store is found or it cannot be opened.
    """
    try:
        skis_dir = find_skis_root()
    except NotARepositoryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config = read_config(skis_dir)
    setup_logging(skis_dir, level=config.get("log_level", "INFO"))
    _schedule_command_log()

    try:
        return SkisDB.open_at(skis_dir)
    except (SkisError, MigrationError) as e:
        logger.error("Failed to open store: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _schedule_command_log() -> None:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return
    started = time.monotonic()
    command = ctx.command_path
    params = {k: v for k, v in ctx.params.items() if not hasattr(v, "read")}

    def _log() -> None:
        duration_ms = round((time.monotonic() - started) * 1000, 1)
        logger.info(
            "command %s",
            command,
            extra={"command": command, "args_data": params, "duration_ms": duration_ms},
        )

    ctx.call_on_close(_log)


def fail(error: Exception, as_json: bool = False) -> NoReturn:
    """Report a typed error and exit 1."""
    code = getattr(error, "code", "error")
    logger.warning("%s", error, extra={"error": code})
    if as_json:
        click.echo(json_mod.dumps({"error": str(error), "code": code}))
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def echo_json(data: Any) -> None:
    click.echo(json_mod.dumps(data, indent=2, default=str))


def resolve_body(body: str | None, body_file: IO[str] | None, editor: bool, *, initial: str = "") -> str | None:
    """Return the body text from exactly one source, or None if none was given.

    ``body_file`` is a ``click.File`` so ``-`` reads stdin.  An editor session
    saved empty (or not saved) yields None.
    """
    given = sum(1 for source in (body is not None, body_file is not None, editor) if source)
    if given > 1:
        raise click.UsageError("Use only one of --body, --body-file or --editor.")
    if body_file is not None:
        return body_file.read()
    if editor:
        edited = click.edit(initial, extension=".md")
        if edited is None or not edited.strip():
            return None
        return edited.strip()
    return body


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def style_type(issue_type: str) -> str:
    return click.style(issue_type, fg=_TYPE_COLORS.get(issue_type), bold=issue_type == "epic")


def style_state(state: str) -> str:
    return click.style(state, fg=_STATE_COLORS.get(state))


def style_label(name: str, color: str | None) -> str:
    if color and len(color) == 6:
        rgb = (int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16))
        return click.style(name, fg=rgb)
    return click.style(name, fg="yellow")


def format_timestamp(value: str, *, now: datetime | None = None) -> str:
    """Relative time for the last 30 days ("5 minutes ago"), a date beyond that."""
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return value
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    seconds = int(((now or datetime.now(UTC)) - ts).total_seconds())
    if seconds < 0:
        return "in the future"
    days = seconds // 86400
    if days > 30:
        return ts.strftime("%Y-%m-%d %H:%M")
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"  # pragma: no cover

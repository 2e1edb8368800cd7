"""CLI commands for existing comments: edit, delete."""

from __future__ import annotations

from typing import IO

import click

from skis.cli_commands.issues import body_options
from skis.cli_common import echo_json, fail, get_db, resolve_body
from skis.errors import SkisError


@click.group("comment")
def comment_group() -> None:
    """Edit or delete comments (add them with 'skis issue comment')."""


@comment_group.command()
@click.argument("comment_id", type=int)
@body_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def edit(comment_id: int, body: str | None, body_file: IO[str] | None, use_editor: bool, as_json: bool) -> None:
    """Replace a comment's body."""
    with get_db() as db:
        try:
            initial = db.get_comment(comment_id).body if use_editor else ""
            text = resolve_body(body, body_file, use_editor, initial=initial)
            if text is None:
                raise click.UsageError("--body, --body-file, or --editor is required")
            updated = db.update_comment(comment_id, text)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(updated.to_dict())
        else:
            click.echo(f"Updated comment #{updated.id}")


@comment_group.command()
@click.argument("comment_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete(comment_id: int, yes: bool, as_json: bool) -> None:
    """Permanently delete a comment."""
    if not yes and not click.confirm(f"Delete comment #{comment_id}?", default=False, err=True):
        click.echo("Cancelled")
        return
    with get_db() as db:
        try:
            db.delete_comment(comment_id)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json({"id": comment_id, "deleted": True})
        else:
            click.echo(f"Deleted comment #{comment_id}")


def register(cli: click.Group) -> None:
    """Register comment commands with the CLI group."""
    cli.add_command(comment_group)

"""CLI commands for issues: create, list, view, edit, close, reopen, delete, restore, comment, link."""

from __future__ import annotations

from collections.abc import Callable
from typing import IO, Any, TypeVar

import click

from skis.cli_common import (
    echo_json,
    fail,
    format_timestamp,
    get_db,
    resolve_body,
    style_label,
    style_state,
    style_type,
)
from skis.core import read_config
from skis.errors import SkisError
from skis.models import ISSUE_TYPES, SORT_FIELDS, SORT_ORDERS, IssueFilter

_body_options = [
    click.option("--body", "-b", default=None, help="Body text"),
    click.option("--body-file", "-F", type=click.File("r"), default=None, help="Read body from file ('-' for stdin)"),
    click.option("--editor", "-e", "use_editor", is_flag=True, help="Compose body in $EDITOR"),
]


F = TypeVar("F", bound=Callable[..., Any])


def body_options(func: F) -> F:
    for option in reversed(_body_options):
        func = option(func)
    return func


@click.group("issue")
def issue_group() -> None:
    """Create, query and change issues."""


@issue_group.command()
@click.option("--title", "-t", required=True, help="Issue title")
@click.option("--type", "issue_type", default="task", help=f"Issue type ({', '.join(ISSUE_TYPES)})")
@click.option("--label", "-l", "labels", multiple=True, help="Label (repeatable; must already exist)")
@body_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(
    title: str,
    issue_type: str,
    labels: tuple[str, ...],
    body: str | None,
    body_file: IO[str] | None,
    use_editor: bool,
    as_json: bool,
) -> None:
    """Create a new issue."""
    text = resolve_body(body, body_file, use_editor)
    with get_db() as db:
        try:
            issue = db.create_issue(title, body=text, type=issue_type, labels=list(labels))
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Created issue #{issue.id}")


@issue_group.command("list")
@click.option("--state", default=None, help="open, closed or all (default from config: open)")
@click.option("--type", "issue_type", default=None, help="Filter by type")
@click.option("--label", "-l", "labels", multiple=True, help="Require label (repeatable, AND)")
@click.option("--search", "-s", default=None, help="Full-text search over title and body")
@click.option("--deleted", "include_deleted", is_flag=True, help="Include deleted issues")
@click.option("--sort", "sort_by", default="updated", help=f"Sort field ({', '.join(SORT_FIELDS)})")
@click.option("--order", "sort_order", default="desc", help=f"Sort order ({', '.join(SORT_ORDERS)})")
@click.option("--limit", default=None, type=int, help="Max results (default from config: 30)")
@click.option("--offset", default=0, type=int, help="Skip first N results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_issues(
    state: str | None,
    issue_type: str | None,
    labels: tuple[str, ...],
    search: str | None,
    include_deleted: bool,
    sort_by: str,
    sort_order: str,
    limit: int | None,
    offset: int,
    as_json: bool,
) -> None:
    """List issues with optional filters."""
    with get_db() as db:
        config = read_config(db.skis_dir)
        state = (state or config.get("default_state", "open")).lower()
        if limit is None:
            limit = config.get("default_limit", 30)
        try:
            flt = IssueFilter(
                state=None if state == "all" else state,  # type: ignore[arg-type]
                type=issue_type,  # type: ignore[arg-type]
                labels=list(labels),
                include_deleted=include_deleted,
                sort_by=sort_by,  # type: ignore[arg-type]
                sort_order=sort_order,  # type: ignore[arg-type]
                limit=limit,
                offset=offset,
            )
            issues = db.search_issues(search, flt) if search is not None else db.list_issues(flt)
        except SkisError as e:
            fail(e, as_json)

        if as_json:
            echo_json([i.to_dict() for i in issues])
            return
        if not issues:
            click.echo("No issues found")
            return

        colors = {label.name: label.color for label in db.list_labels()}
        click.echo(f"{'ID':<6} {'TYPE':<8} {'STATE':<8} {'LABELS':<20} TITLE")
        click.echo("-" * 80)
        for issue in issues:
            # Pad before styling so ANSI codes do not skew the columns.
            label_str = ",".join(style_label(n, colors.get(n)) for n in issue.labels) if issue.labels else "-"
            pad = " " * max(0, 20 - len(",".join(issue.labels) if issue.labels else "-"))
            click.echo(
                f"{'#' + str(issue.id):<6} "
                f"{style_type(issue.type)}{' ' * (8 - len(issue.type))} "
                f"{style_state(issue.state)}{' ' * (8 - len(issue.state))} "
                f"{label_str}{pad} {issue.title}"
            )


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--comments", "-c", "show_comments", is_flag=True, help="Show comments")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def view(issue_id: int, show_comments: bool, as_json: bool) -> None:
    """Show issue details."""
    with get_db() as db:
        try:
            issue = db.get_issue(issue_id)
            comments = db.get_comments(issue_id) if show_comments else []
        except SkisError as e:
            fail(e, as_json)

        if as_json:
            data: dict[str, object] = dict(issue.to_dict())
            if show_comments:
                data["comments"] = [c.to_dict() for c in comments]
            echo_json(data)
            return

        click.echo(click.style(f"#{issue.id} {issue.title}", bold=True))
        click.echo(f"Type: {style_type(issue.type)}  State: {style_state(issue.state)}")
        if issue.state_reason:
            click.echo(f"Closed: {issue.state_reason}")
        if issue.is_deleted:
            click.echo(click.style("Deleted", fg="red") + f" {format_timestamp(issue.deleted_at or '')}")
        click.echo(f"Created: {format_timestamp(issue.created_at)}")
        click.echo(f"Updated: {format_timestamp(issue.updated_at)}")
        if issue.labels:
            labels = db.get_issue_labels(issue_id)
            click.echo(f"Labels: {', '.join(style_label(lbl.name, lbl.color) for lbl in labels)}")
        if issue.links:
            click.echo(f"Linked: {', '.join(f'#{i}' for i in issue.links)}")
        if issue.body:
            click.echo(f"\n{issue.body}")
        if comments:
            click.echo("\nComments:")
            click.echo("-" * 40)
            for c in comments:
                click.echo(f"[#{c.id} {format_timestamp(c.created_at)}]")
                click.echo(c.body)
                click.echo()


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--title", "-t", default=None, help="New title")
@click.option("--type", "issue_type", default=None, help="New type")
@body_options
@click.option("--add-label", "add_labels", multiple=True, help="Attach label (repeatable)")
@click.option("--remove-label", "remove_labels", multiple=True, help="Detach label (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def edit(
    issue_id: int,
    title: str | None,
    issue_type: str | None,
    body: str | None,
    body_file: IO[str] | None,
    use_editor: bool,
    add_labels: tuple[str, ...],
    remove_labels: tuple[str, ...],
    as_json: bool,
) -> None:
    """Edit an issue's title, type, body or labels."""
    with get_db() as db:
        try:
            current = db.get_issue(issue_id)
            text = resolve_body(body, body_file, use_editor, initial=current.body or "")
            for name in add_labels:
                db.get_label(name)
            issue = db.update_issue(issue_id, title=title, body=text, type=issue_type)
            for name in add_labels:
                db.add_label(issue_id, name)
            for name in remove_labels:
                db.remove_label(issue_id, name)
            if add_labels or remove_labels:
                issue = db.get_issue(issue_id)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Updated issue #{issue.id}")


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--reason", "-r", default="completed", help="completed or not_planned")
@click.option("--comment", "-c", default=None, help="Add a closing comment")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def close(issue_id: int, reason: str, comment: str | None, as_json: bool) -> None:
    """Close an issue."""
    with get_db() as db:
        try:
            issue = db.close_issue(issue_id, reason=reason, comment=comment)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Closed issue #{issue.id} as {issue.state_reason}")


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def reopen(issue_id: int, as_json: bool) -> None:
    """Reopen a closed issue."""
    with get_db() as db:
        try:
            issue = db.reopen_issue(issue_id)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Reopened issue #{issue.id}")


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete(issue_id: int, yes: bool, as_json: bool) -> None:
    """Soft-delete an issue (undo with 'skis issue restore')."""
    if not yes and not click.confirm(f"Delete issue #{issue_id}?", default=False, err=True):
        click.echo("Cancelled")
        return
    with get_db() as db:
        try:
            issue = db.delete_issue(issue_id)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Deleted issue #{issue.id}")


@issue_group.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def restore(issue_id: int, as_json: bool) -> None:
    """Restore a deleted issue."""
    with get_db() as db:
        try:
            issue = db.restore_issue(issue_id)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(issue.to_dict())
        else:
            click.echo(f"Restored issue #{issue.id}")


@issue_group.command()
@click.argument("issue_id", type=int)
@body_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comment(issue_id: int, body: str | None, body_file: IO[str] | None, use_editor: bool, as_json: bool) -> None:
    """Add a comment to an issue."""
    text = resolve_body(body, body_file, use_editor)
    if text is None:
        raise click.UsageError("--body, --body-file, or --editor is required")
    with get_db() as db:
        try:
            added = db.add_comment(issue_id, text)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(added.to_dict())
        else:
            click.echo(f"Added comment #{added.id} to issue #{issue_id}")


@issue_group.command()
@click.argument("issue_a", type=int)
@click.argument("issue_b", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link(issue_a: int, issue_b: int, as_json: bool) -> None:
    """Link two issues."""
    with get_db() as db:
        try:
            created = db.add_link(issue_a, issue_b)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(created.to_dict())
        else:
            click.echo(f"Linked issue #{issue_a} and #{issue_b}")


@issue_group.command()
@click.argument("issue_a", type=int)
@click.argument("issue_b", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def unlink(issue_a: int, issue_b: int, as_json: bool) -> None:
    """Remove the link between two issues."""
    with get_db() as db:
        removed = db.remove_link(issue_a, issue_b)
        if as_json:
            echo_json({"issue_a_id": min(issue_a, issue_b), "issue_b_id": max(issue_a, issue_b), "removed": removed})
        elif removed:
            click.echo(f"Unlinked issue #{issue_a} and #{issue_b}")
        else:
            click.echo(f"Issues #{issue_a} and #{issue_b} were not linked")


def register(cli: click.Group) -> None:
    """Register issue commands with the CLI group."""
    cli.add_command(issue_group)

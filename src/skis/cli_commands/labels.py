"""CLI commands for label definitions: list, create, delete."""

from __future__ import annotations

import click

from skis.cli_common import echo_json, fail, get_db, style_label
from skis.errors import SkisError


@click.group("label")
def label_group() -> None:
    """Manage labels (attach them with 'skis issue edit --add-label')."""


@label_group.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_labels(as_json: bool) -> None:
    """List all labels."""
    with get_db() as db:
        labels = db.list_labels()
        if as_json:
            echo_json([label.to_dict() for label in labels])
            return
        if not labels:
            click.echo("No labels found")
            return
        click.echo(f"{'NAME':<20} {'COLOR':<10} DESCRIPTION")
        click.echo("-" * 60)
        for label in labels:
            pad = " " * max(0, 20 - len(label.name))
            click.echo(f"{style_label(label.name, label.color)}{pad} {label.color:<10} {label.description or ''}")


@label_group.command()
@click.argument("name")
@click.option("--description", "-d", default=None, help="Description")
@click.option("--color", "-c", default=None, help="Six hex digits, e.g. ff0000 (default: derived from name)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(name: str, description: str | None, color: str | None, as_json: bool) -> None:
    """Create a label."""
    with get_db() as db:
        try:
            label = db.create_label(name, description=description, color=color)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json(label.to_dict())
        else:
            click.echo(f"Created label '{label.name}' ({label.color})")


@label_group.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete(name: str, yes: bool, as_json: bool) -> None:
    """Delete a label and detach it from every issue."""
    if not yes and not click.confirm(f"Delete label '{name}'?", default=False, err=True):
        click.echo("Cancelled")
        return
    with get_db() as db:
        try:
            db.delete_label(name)
        except SkisError as e:
            fail(e, as_json)
        if as_json:
            echo_json({"name": name, "deleted": True})
        else:
            click.echo(f"Deleted label '{name}'")


def register(cli: click.Group) -> None:
    """Register label commands with the CLI group."""
    cli.add_command(label_group)

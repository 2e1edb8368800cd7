"""CLI commands for admin: init, log-path, dashboard."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from skis.core import DB_FILENAME, SKIS_DIR_NAME, find_skis_root, init_store
from skis.errors import SkisError
from skis.logging import log_path as _log_path
from skis.logging import setup_logging
from skis.migrations import MigrationError


@click.command()
def init() -> None:
    """Initialize .skis/ in the current directory."""
    cwd = Path.cwd()
    try:
        db = init_store(cwd)
    except (SkisError, MigrationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    with db:
        setup_logging(db.skis_dir)
        click.echo(f"Initialized {SKIS_DIR_NAME}/ in {cwd}")
        click.echo(f"  Database: {db.skis_dir / DB_FILENAME}")
        click.echo(f"  Schema:   v{db.get_schema_version()}")


@click.command("log-path")
def log_path() -> None:
    """Print the path of the JSON log file."""
    try:
        skis_dir = find_skis_root()
    except SkisError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(str(_log_path(skis_dir)))


@click.command()
@click.option("--port", default=8377, type=int, help="Server port (default 8377)")
@click.option("--no-browser", is_flag=True, help="Don't auto-open browser")
def dashboard(port: int, no_browser: bool) -> None:
    """Serve the local JSON API for the desktop shell (requires skis[dashboard])."""
    try:
        from skis.dashboard import main as dashboard_main
    except ImportError:
        click.echo('Dashboard requires extra dependencies. Install with: pip install "skis[dashboard]"', err=True)
        sys.exit(1)

    try:
        dashboard_main(port=port, no_browser=no_browser)
    except (SkisError, MigrationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(init)
    cli.add_command(log_path)
    cli.add_command(dashboard)

"""CLI for the skis issue tracker.

Convention-based: discovers .skis/ by walking up from cwd.

Usage:
    skis init                                      # Initialize .skis/ in cwd
    skis issue create -t "Fix the bug" --type bug  # Create issue
    skis issue list --state all --label bug        # List issues
    skis issue list --search "login"               # Full-text search
    skis issue view 1 --comments                   # Show issue details
    skis issue edit 1 --add-label bug              # Edit issue
    skis issue close 1 --reason not_planned        # Close issue
    skis issue reopen 1                            # Reopen closed issue
    skis issue delete 1 / restore 1                # Soft delete / undo
    skis issue comment 1 -b "text"                 # Add comment
    skis issue link 1 2 / unlink 1 2               # Link / unlink issues
    skis comment edit 3 -e                         # Edit comment in $EDITOR
    skis label create bug --color ff0000           # Create label
    skis log-path                                  # Where the JSON log lives
    skis dashboard                                 # Local JSON API
"""

from __future__ import annotations

import click

from skis import __version__
from skis.cli_commands import admin, comments, issues, labels


@click.group()
@click.version_option(version=__version__, prog_name="skis")
def cli() -> None:
    """skis: a local-first issue tracker."""


for _module in (admin, issues, comments, labels):
    _module.register(cli)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

"""Shared pytest fixtures for skis tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner

from skis.core import DB_FILENAME, SKIS_DIR_NAME, SkisDB, default_config, write_config


@pytest.fixture
def db(tmp_path: Path) -> Generator[SkisDB, None, None]:
    """Fresh SkisDB for each test."""
    d = SkisDB(tmp_path / DB_FILENAME)
    d.initialize()
    yield d
    d.close()


@dataclass
class PopulatedDB:
    """A SkisDB plus the ids of the issues created for it."""

    db: SkisDB
    ids: dict[str, int]


def populate(db: SkisDB) -> PopulatedDB:
    """Fill *db* with a representative issue set.

    Creates:
    - labels "bug" and "urgent"
    - epic E
    - A (bug, open) labeled ["bug", "urgent"]
    - B (task, open) with one comment
    - C (task, closed as completed)
    - link A <-> B
    """
    db.create_label("bug", description="Something is broken")
    db.create_label("urgent", color="ff0000")
    epic = db.create_issue("Epic E", type="epic")
    a = db.create_issue("Issue A", type="bug", body="Login fails on submit", labels=["bug", "urgent"])
    b = db.create_issue("Issue B")
    c = db.create_issue("Issue C")
    db.close_issue(c.id)
    db.add_link(a.id, b.id)
    db.add_comment(b.id, "Test comment")
    return PopulatedDB(db=db, ids={"epic": epic.id, "a": a.id, "b": b.id, "c": c.id})


@pytest.fixture
def populated_db(db: SkisDB) -> PopulatedDB:
    """SkisDB pre-populated via populate()."""
    return populate(db)


@pytest.fixture
def skis_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a skis project (.skis/ with config + db).

    Returns the project root (parent of .skis/).
    """
    skis_dir = tmp_path / SKIS_DIR_NAME
    skis_dir.mkdir()
    write_config(skis_dir, default_config())

    d = SkisDB(skis_dir / DB_FILENAME)
    d.initialize()
    d.close()
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()

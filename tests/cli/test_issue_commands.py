"""CLI tests for issue commands (create, list, view, edit, close, reopen, delete, restore, comment, link)."""

from __future__ import annotations

import json
import os
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from skis.cli import cli
from skis.core import DB_FILENAME, SKIS_DIR_NAME, read_config, write_config
from tests.cli.conftest import _extract_id


def _create(runner: CliRunner, *args: str) -> int:
    result = runner.invoke(cli, ["issue", "create", *args])
    assert result.exit_code == 0, result.output
    return _extract_id(result.output)


class TestInit:
    def test_init_creates_skis_dir(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["init"])
            assert result.exit_code == 0
            assert f"Initialized {SKIS_DIR_NAME}/" in result.output
            assert (tmp_path / SKIS_DIR_NAME / DB_FILENAME).exists()
            assert read_config(tmp_path / SKIS_DIR_NAME)["default_state"] == "open"
        finally:
            os.chdir(original)

    def test_init_already_exists(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 1
        assert "Already initialized" in result.output

    def test_command_outside_project(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["issue", "list"])
            assert result.exit_code == 1
            assert "Not a skis repository" in result.output
        finally:
            os.chdir(original)

    def test_discovers_from_subdirectory(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _create(runner, "--title", "Top level")
        nested = root / "src" / "pkg"
        nested.mkdir(parents=True)
        os.chdir(str(nested))
        result = runner.invoke(cli, ["issue", "list"])
        assert result.exit_code == 0
        assert "Top level" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "skis" in result.output


class TestCreate:
    def test_create(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create", "-t", "Fix the bug", "--type", "bug"])
        assert result.exit_code == 0
        assert result.output.strip() == "Created issue #1"

    def test_create_json(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create", "--title", "JSON issue", "-b", "Body text", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["title"] == "JSON issue"
        assert data["body"] == "Body text"
        assert data["state"] == "open"
        assert data["labels"] == []

    def test_create_requires_title(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create"])
        assert result.exit_code == 2

    def test_create_bad_type(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create", "-t", "Story", "--type", "story"])
        assert result.exit_code == 1
        assert "Invalid issue type 'story'" in result.output

    def test_create_blank_title(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create", "-t", "   "])
        assert result.exit_code == 1
        assert "Title cannot be empty" in result.output

    def test_create_with_labels(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        runner.invoke(cli, ["label", "create", "bug"])
        result = runner.invoke(cli, ["issue", "create", "-t", "Labeled", "-l", "BUG", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["labels"] == ["bug"]

    def test_create_unknown_label(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "create", "-t", "Labeled", "-l", "ghost"])
        assert result.exit_code == 1
        assert "Label 'ghost' not found" in result.output
        assert "No issues found" in runner.invoke(cli, ["issue", "list"]).output

    def test_body_from_stdin(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(
            cli, ["issue", "create", "-t", "Piped", "--body-file", "-", "--json"], input="Line 1\nLine 2\n"
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["body"] == "Line 1\nLine 2\n"

    def test_body_from_file(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / "body.md").write_text("From a file")
        result = runner.invoke(cli, ["issue", "create", "-t", "Filed", "-F", "body.md", "--json"])
        assert json.loads(result.output)["body"] == "From a file"

    def test_body_sources_are_exclusive(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / "body.md").write_text("x")
        result = runner.invoke(cli, ["issue", "create", "-t", "Both", "-b", "inline", "-F", "body.md"])
        assert result.exit_code == 2
        assert "only one of" in result.output


class TestList:
    def test_empty(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "list"])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_table(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        _create(runner, "-t", "Visible issue", "--type", "bug")
        result = runner.invoke(cli, ["issue", "list"])
        assert result.exit_code == 0
        assert "ID" in result.output
        assert "TITLE" in result.output
        assert "#1" in result.output
        assert "bug" in result.output
        assert "Visible issue" in result.output

    def test_closed_hidden_by_default(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        _create(runner, "-t", "Open one")
        closed = _create(runner, "-t", "Closed one")
        runner.invoke(cli, ["issue", "close", str(closed)])
        result = runner.invoke(cli, ["issue", "list"])
        assert "Open one" in result.output
        assert "Closed one" not in result.output
        result = runner.invoke(cli, ["issue", "list", "--state", "all"])
        assert "Closed one" in result.output
        result = runner.invoke(cli, ["issue", "list", "--state", "closed"])
        assert "Open one" not in result.output

    def test_default_state_from_config(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        closed = _create(runner, "-t", "Closed one")
        runner.invoke(cli, ["issue", "close", str(closed)])
        skis_dir = root / SKIS_DIR_NAME
        write_config(skis_dir, {**read_config(skis_dir), "default_state": "all"})
        assert "Closed one" in runner.invoke(cli, ["issue", "list"]).output

    def test_json_and_pagination(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        ids = [_create(runner, "-t", f"Issue {n}") for n in range(5)]
        result = runner.invoke(cli, ["issue", "list", "--sort", "id", "--order", "asc", "--limit", "2", "--offset", "1", "--json"])
        assert result.exit_code == 0
        assert [i["id"] for i in json.loads(result.output)] == ids[1:3]

    def test_label_filter(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        runner.invoke(cli, ["label", "create", "bug"])
        runner.invoke(cli, ["label", "create", "ui"])
        both = _create(runner, "-t", "Both", "-l", "bug", "-l", "ui")
        _create(runner, "-t", "Only bug", "-l", "bug")
        result = runner.invoke(cli, ["issue", "list", "-l", "bug", "-l", "ui", "--json"])
        assert [i["id"] for i in json.loads(result.output)] == [both]

    def test_search(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        target = _create(runner, "-t", "Login page broken", "-b", "Users cannot authenticate")
        _create(runner, "-t", "Unrelated")
        result = runner.invoke(cli, ["issue", "list", "--search", "authent", "--json"])
        assert [i["id"] for i in json.loads(result.output)] == [target]

    def test_search_punctuation_only(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        _create(runner, "-t", "Something")
        result = runner.invoke(cli, ["issue", "list", "-s", "!!!"])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_bad_sort(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "list", "--sort", "priority", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["code"] == "invalid_input"

    def test_deleted_flag(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Soon deleted")
        runner.invoke(cli, ["issue", "delete", str(issue_id), "--yes"])
        assert "No issues found" in runner.invoke(cli, ["issue", "list"]).output
        assert "Soon deleted" in runner.invoke(cli, ["issue", "list", "--deleted"]).output


class TestView:
    def test_view(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Show me", "-b", "The details")
        result = runner.invoke(cli, ["issue", "view", str(issue_id)])
        assert result.exit_code == 0
        assert f"#{issue_id} Show me" in result.output
        assert "The details" in result.output
        assert "just now" in result.output

    def test_view_with_comments(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Discussed")
        runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "A remark"])
        plain = runner.invoke(cli, ["issue", "view", str(issue_id)])
        assert "A remark" not in plain.output
        result = runner.invoke(cli, ["issue", "view", str(issue_id), "--comments"])
        assert "A remark" in result.output

    def test_view_json_with_comments(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Discussed")
        runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "A remark"])
        data = json.loads(runner.invoke(cli, ["issue", "view", str(issue_id), "-c", "--json"]).output)
        assert data["id"] == issue_id
        assert [c["body"] for c in data["comments"]] == ["A remark"]

    def test_view_missing(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "view", "99"])
        assert result.exit_code == 1
        assert "Issue #99 not found" in result.output

    def test_view_missing_json(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "view", "99", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": "Issue #99 not found", "code": "not_found"}

    def test_view_non_integer_id(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "view", "abc"])
        assert result.exit_code == 2


class TestEdit:
    def test_edit_title_and_type(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Old")
        result = runner.invoke(cli, ["issue", "edit", str(issue_id), "-t", "New", "--type", "epic", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["title"] == "New"
        assert data["type"] == "epic"

    def test_edit_labels(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        runner.invoke(cli, ["label", "create", "bug"])
        runner.invoke(cli, ["label", "create", "ui"])
        issue_id = _create(runner, "-t", "Relabel", "-l", "bug")
        result = runner.invoke(cli, ["issue", "edit", str(issue_id), "--add-label", "ui", "--remove-label", "bug", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["labels"] == ["ui"]

    def test_edit_unknown_label_changes_nothing(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Stable")
        result = runner.invoke(cli, ["issue", "edit", str(issue_id), "-t", "Changed", "--add-label", "ghost"])
        assert result.exit_code == 1
        view = json.loads(runner.invoke(cli, ["issue", "view", str(issue_id), "--json"]).output)
        assert view["title"] == "Stable"

    def test_edit_clear_body(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Has body", "-b", "text")
        result = runner.invoke(cli, ["issue", "edit", str(issue_id), "-b", "", "--json"])
        assert json.loads(result.output)["body"] is None

    def test_edit_missing(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["issue", "edit", "42", "-t", "Nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestLifecycle:
    def test_close_and_reopen(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Lifecycle")
        result = runner.invoke(cli, ["issue", "close", str(issue_id), "-r", "not_planned", "-c", "Out of scope"])
        assert result.exit_code == 0
        assert f"Closed issue #{issue_id} as not_planned" in result.output
        view = json.loads(runner.invoke(cli, ["issue", "view", str(issue_id), "-c", "--json"]).output)
        assert view["state"] == "closed"
        assert [c["body"] for c in view["comments"]] == ["Out of scope"]

        result = runner.invoke(cli, ["issue", "reopen", str(issue_id)])
        assert result.exit_code == 0
        assert f"Reopened issue #{issue_id}" in result.output

    def test_close_twice(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Once")
        runner.invoke(cli, ["issue", "close", str(issue_id)])
        result = runner.invoke(cli, ["issue", "close", str(issue_id), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["code"] == "invalid_transition"

    def test_reopen_open(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Open")
        result = runner.invoke(cli, ["issue", "reopen", str(issue_id)])
        assert result.exit_code == 1
        assert "already open" in result.output

    def test_delete_confirm_declined(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Keep me")
        result = runner.invoke(cli, ["issue", "delete", str(issue_id)], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert "Keep me" in runner.invoke(cli, ["issue", "list"]).output

    def test_delete_confirmed_and_restore(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Round trip")
        result = runner.invoke(cli, ["issue", "delete", str(issue_id)], input="y\n")
        assert result.exit_code == 0
        assert f"Deleted issue #{issue_id}" in result.output
        result = runner.invoke(cli, ["issue", "restore", str(issue_id)])
        assert result.exit_code == 0
        assert "Round trip" in runner.invoke(cli, ["issue", "list"]).output

    def test_view_shows_deleted(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Gone")
        runner.invoke(cli, ["issue", "delete", str(issue_id), "-y"])
        result = runner.invoke(cli, ["issue", "view", str(issue_id)])
        assert result.exit_code == 0
        assert "Deleted" in result.output


class TestCommentsAndLinks:
    def test_comment(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Talk")
        result = runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "Hello"])
        assert result.exit_code == 0
        assert f"Added comment #1 to issue #{issue_id}" in result.output

    def test_comment_requires_body(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Quiet")
        result = runner.invoke(cli, ["issue", "comment", str(issue_id)])
        assert result.exit_code == 2

    def test_comment_blank_body(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Quiet")
        result = runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "   "])
        assert result.exit_code == 1
        assert "Comment body cannot be empty" in result.output

    def test_comment_edit_and_delete(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Edited remarks")
        runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "Draft"])
        result = runner.invoke(cli, ["comment", "edit", "1", "-b", "Final", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["body"] == "Final"

        result = runner.invoke(cli, ["comment", "delete", "1", "--yes"])
        assert result.exit_code == 0
        assert "Deleted comment #1" in result.output
        result = runner.invoke(cli, ["comment", "delete", "1", "--yes"])
        assert result.exit_code == 1
        assert "Comment #1 not found" in result.output

    def test_comment_edit_with_editor_starts_from_body(
        self, cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:

        runner, _ = cli_in_project
        issue_id = _create(runner, "-t", "Editor")
        runner.invoke(cli, ["issue", "comment", str(issue_id), "-b", "Original"])
        seen: list[str] = []

        def fake_edit(text: str, extension: str) -> str:
            seen.append(text)
            return text + " plus more"

        monkeypatch.setattr(click, "edit", fake_edit)
        result = runner.invoke(cli, ["comment", "edit", "1", "-e", "--json"])
        assert result.exit_code == 0
        assert seen == ["Original"]
        assert json.loads(result.output)["body"] == "Original plus more"

    def test_link_and_unlink(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        a = _create(runner, "-t", "A")
        b = _create(runner, "-t", "B")
        result = runner.invoke(cli, ["issue", "link", str(b), str(a)])
        assert result.exit_code == 0
        assert f"Linked issue #{b} and #{a}" in result.output
        view = json.loads(runner.invoke(cli, ["issue", "view", str(a), "--json"]).output)
        assert view["links"] == [b]

        result = runner.invoke(cli, ["issue", "link", str(a), str(b)])
        assert result.exit_code == 1
        assert "already exists" in result.output

        result = runner.invoke(cli, ["issue", "unlink", str(a), str(b)])
        assert "Unlinked" in result.output
        result = runner.invoke(cli, ["issue", "unlink", str(a), str(b)])
        assert result.exit_code == 0
        assert "were not linked" in result.output

    def test_self_link(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        a = _create(runner, "-t", "A")
        result = runner.invoke(cli, ["issue", "link", str(a), str(a), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["code"] == "invalid_input"

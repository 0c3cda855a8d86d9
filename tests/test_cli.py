"""Tests for the folio command line."""

import pytest
from typer.testing import CliRunner

from folio import __version__
from folio.cli import app
from folio.cli.errors import ExitCode

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    """Run every command from an empty directory (no .env, no .folio.json)."""
    monkeypatch.chdir(tmp_path)


class TestMainApp:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"folio version {__version__}" in result.output

    def test_no_command_prints_help(self):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "sync" in result.output
        assert "goals" in result.output

    def test_subcommands_are_registered(self):
        result = runner.invoke(app, ["--help"])

        for command in ("serve", "sync", "goals", "version"):
            assert command in result.output


class TestGoalsCommands:
    """Goal commands against the in-memory store (no KV credentials)."""

    def test_list_empty(self):
        result = runner.invoke(app, ["goals", "list"])

        assert result.exit_code == 0
        assert "No goals found" in result.output

    def test_add(self):
        result = runner.invoke(app, ["goals", "add", "Finish draft", "--priority", "high"])

        assert result.exit_code == 0
        assert "Added goal" in result.output

    def test_add_invalid_priority(self):
        result = runner.invoke(app, ["goals", "add", "Finish draft", "--priority", "urgent"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid goal" in result.output

    def test_move_unknown_goal(self):
        result = runner.invoke(app, ["goals", "move", "abc", "completed"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "not found" in result.output

    def test_list_rejects_unknown_status(self):
        result = runner.invoke(app, ["goals", "list", "--status", "someday"])

        assert result.exit_code != 0


class TestSyncCommands:
    def test_preview_invalid_url(self):
        result = runner.invoke(app, ["sync", "preview", "https://gitlab.com/octo/widget"])

        assert result.exit_code == ExitCode.USER_ERROR

    def test_project_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FOLIO_PROJECTS_FILE", str(tmp_path / "projects.json"))

        result = runner.invoke(app, ["sync", "project", "nope"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "not found" in result.output

    def test_sync_without_subcommand_shows_help(self):
        result = runner.invoke(app, ["sync"])

        assert "preview" in result.output
        assert "scheduled" in result.output

# tests/integration/test_cli.py
"""CLI surface: help, argument validation and exit codes (Typer CliRunner)."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import git
from nbversion.cli import APP

runner = CliRunner()


def test_help_lists_options():
    result = runner.invoke(APP, ["--help"])
    assert result.exit_code == 0
    for opt in ("--rollback", "--fix"):
        assert opt in result.output


def test_short_help_flag():
    assert runner.invoke(APP, ["-h"]).exit_code == 0


@pytest.mark.parametrize("flag", ["--dir", "--log-level", "--log-file", "--version"])
def test_no_extra_flags(flag, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(APP, [flag, "x"])
    assert result.exit_code == 2
    assert flag not in runner.invoke(APP, ["--help"]).output


def test_not_a_git_repository_exits_1(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(APP, ["v1", "x"])
    assert result.exit_code == 1
    assert "Not a git repository" in result.output


def test_rollback_without_label_exits_1(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(APP, ["--rollback"])
    assert result.exit_code == 1
    assert "Please specify version to rollback" in result.output


def test_bad_config_exits_1(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "nbversion.yaml").write_text("colour: blue\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(APP, ["v1"])
    assert result.exit_code == 1
    assert "unknown setting" in result.output


@pytest.mark.integration
def test_rollback_confirmed_on_stdin(git_repo: Path, monkeypatch: pytest.MonkeyPatch):
    git(git_repo, "tag", "-a", "v1", "-m", "v1: first")
    monkeypatch.chdir(git_repo)
    result = runner.invoke(APP, ["--rollback", "v1"], input="y\n")
    assert result.exit_code == 0, result.output
    assert git(git_repo, "tag", "--list") == ""
    assert not (git_repo / "notebooks" / "Model(v1).ipynb").exists()


@pytest.mark.integration
def test_rollback_declined_keeps_everything(git_repo: Path, monkeypatch: pytest.MonkeyPatch):
    git(git_repo, "tag", "-a", "v1", "-m", "v1: first")
    monkeypatch.chdir(git_repo)
    result = runner.invoke(APP, ["--rollback", "v1"], input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert git(git_repo, "tag", "--list") == "v1"


@pytest.mark.integration
def test_cancelled_run_exits_0(git_repo: Path, monkeypatch: pytest.MonkeyPatch):
    # clean tree: "Continue anyway?" answered with the default (no)
    monkeypatch.chdir(git_repo)
    result = runner.invoke(APP, ["v2", "x"], input="\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output


@pytest.mark.integration
def test_log_file_from_environment(git_repo: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(git_repo)
    monkeypatch.setenv("NBVERSION_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("NBVERSION_LOG_FILE", "nbversion.log")
    result = runner.invoke(APP, ["--fix"], input="5\n")
    assert result.exit_code == 0, result.output
    assert "$ git" in (git_repo / "nbversion.log").read_text(encoding="utf-8")


@pytest.mark.integration
def test_failed_step_without_input_rolls_back(git_repo: Path, monkeypatch: pytest.MonkeyPatch):
    git(git_repo, "remote", "set-url", "origin", str(git_repo.parent / "gone.git"))
    (git_repo / "notebooks" / "scratch.txt").write_text("wip\n", encoding="utf-8")
    monkeypatch.chdir(git_repo)
    # "Proceed?" is confirmed, then stdin runs dry before the push failure menu
    result = runner.invoke(APP, ["v2", "x"], input="y\n")
    assert result.exit_code == 1
    assert result.output.count("What would you like to do") == 1
    assert git(git_repo, "rev-parse", "--abbrev-ref", "HEAD") == "main"
    assert not (git_repo / "notebooks" / "Model(v2).ipynb").exists()

# tests/conftest.py
"""
Shared pytest fixtures for nbversion.

- Hermetic git: identity comes from the environment and global/system config
  is ignored, so tests never depend on the developer's ~/.gitconfig.
- `git_repo`: a throwaway project with one committed notebook, pushed to a
  bare `origin` remote on branch `main`.
- `ScriptedPrompter`: answers prompts from a table instead of the terminal.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

HAVE_GIT = shutil.which("git") is not None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: runs real git commands against temporary repositories")


# -----------------------------------------------------------------------------
# Git environment
# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "nbversion tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "nbversion tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for key in (
        "NBVERSION_NOTEBOOKS_DIR",
        "NBVERSION_REMOTE",
        "NBVERSION_LOG_LEVEL",
        "NBVERSION_LOG_FILE",
        "NBVERSION_SCRIPT_EXTENSIONS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_logger():
    """CLI runs bind handlers to CliRunner streams; drop them after each test."""
    yield
    logger = logging.getLogger("nbversion")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True


def git(cwd: Path, *args: str) -> str:
    cp = subprocess.run(["git", *args], cwd=str(cwd), text=True, capture_output=True, check=True)
    return cp.stdout.strip()


def notebook_json(*sources: str) -> str:
    """A Jupyter-style (indent=1) notebook with one markdown cell per source string."""
    cells = [{"cell_type": "markdown", "metadata": {}, "source": [s]} for s in sources]
    doc = {"cells": cells, "metadata": {}, "nbformat": 4, "nbformat_minor": 5}
    return json.dumps(doc, indent=1) + "\n"


@pytest.fixture()
def bare_remote(tmp_path: Path) -> Path:
    if not HAVE_GIT:
        pytest.skip("git executable not available")
    remote = tmp_path / "remote.git"
    git(tmp_path, "init", "--bare", "-q", str(remote))
    return remote


@pytest.fixture()
def git_repo(tmp_path: Path, bare_remote: Path) -> Path:
    """Project on branch `main` with notebooks/Model(v1).ipynb committed and pushed."""
    root = tmp_path / "project"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    (root / "README.md").write_text("# demo model\n", encoding="utf-8")
    nb_dir = root / "notebooks"
    nb_dir.mkdir()
    (nb_dir / "Model(v1).ipynb").write_text(notebook_json("first experiment"), encoding="utf-8")
    git(root, "add", ".")
    git(root, "commit", "-q", "-m", "initial")
    git(root, "remote", "add", "origin", str(bare_remote))
    git(root, "push", "-q", "-u", "origin", "main")
    return root


@pytest.fixture()
def remote_refs(bare_remote: Path):
    def _refs() -> List[str]:
        out = git(bare_remote, "for-each-ref", "--format=%(refname)")
        return [ln for ln in out.splitlines() if ln]

    return _refs


# -----------------------------------------------------------------------------
# Prompter
# -----------------------------------------------------------------------------

class ScriptedPrompter:
    """
    Answers prompts by matching a substring of the question.

    A list value is consumed one answer per call. Unmatched questions get the
    prompt's default. Every question is recorded in `asked`.
    """

    def __init__(self, answers: Optional[Dict[str, Any]] = None):
        self.answers = dict(answers or {})
        self.asked: List[Tuple[str, str]] = []

    def _lookup(self, question: str, default: Any) -> Any:
        for key, value in self.answers.items():
            if key in question:
                if isinstance(value, list):
                    return value.pop(0) if value else default
                return value
        return default

    def ask(self, question: str, default: str = "") -> str:
        self.asked.append(("ask", question))
        return self._lookup(question, default)

    def confirm(self, question: str, default: bool = False) -> bool:
        self.asked.append(("confirm", question))
        return self._lookup(question, default)

    def choose(self, question: str, choices: List[str], default: Optional[str] = None) -> str:
        self.asked.append(("choose", question))
        answer = self._lookup(question, default)
        assert answer in choices, f"{answer!r} not in {choices}"
        return answer


@pytest.fixture()
def prompter():
    """Factory: `prompter({"Proceed": True, "Choose option": ["1", "3"]})`."""
    return ScriptedPrompter

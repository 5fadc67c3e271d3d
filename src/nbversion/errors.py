# nbversion/errors.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Error kinds raised by the versioning workflow.

`NotAGitRepository` is fatal. Every other error is recoverable and is routed
through the decision point in `nbversion.prompts`.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional


class NbVersionError(Exception):
    """Base class for all nbversion errors."""

    recoverable: bool = True


class NotAGitRepository(NbVersionError):
    recoverable = False

    def __init__(self, path: Path):
        super().__init__(f"Not a git repository: {path} (run: git init)")
        self.path = path


class NotebookDirectoryMissing(NbVersionError):
    def __init__(self, path: Path):
        super().__init__(f"notebooks directory not found: {path}")
        self.path = path


class NoSourceNotebookFound(NbVersionError):
    def __init__(self, directory: Path):
        super().__init__(f"No versioned notebook found in {directory}")
        self.directory = directory


class VersionControlCommandFailed(NbVersionError):
    """A git invocation exited non-zero (or git could not be started)."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {returncode}"
        super().__init__(f"`{' '.join(cmd)}` failed: {detail}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class DocumentParseFailed(NbVersionError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not add version info to {path.name}: {reason}")
        self.path = path
        self.reason = reason


class InvalidNotebookName(NbVersionError):
    def __init__(self, reason: str):
        super().__init__(f"Cannot name the new notebook: {reason}")
        self.reason = reason


class NotebookWriteFailed(NbVersionError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not create notebook {path.name}: {reason}")
        self.path = path
        self.reason = reason


class BranchAlreadyExists(NbVersionError):
    def __init__(self, branch: str):
        super().__init__(f"Branch '{branch}' already exists")
        self.branch = branch


class ConfigError(NbVersionError):
    recoverable = False

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path

# nbversion/git.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Thin git subprocess wrapper.

Git is treated as a black-box command executor: every call either succeeds
or raises `VersionControlCommandFailed`. Output is only parsed for branch,
tag, and remote lookups.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional

from .errors import NotAGitRepository, VersionControlCommandFailed
from .logging_utils import get_logger

log = get_logger("nbversion.git")


class Git:
    """Run git commands inside one working tree."""

    def __init__(self, cwd: Path, remote: str = "origin"):
        self.cwd = Path(cwd)
        self.remote = remote

    # ---- plumbing ----
    def run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        log.debug("$ %s", " ".join(cmd))
        try:
            cp = subprocess.run(cmd, cwd=str(self.cwd), text=True, capture_output=True)
        except FileNotFoundError as e:
            raise VersionControlCommandFailed(cmd, 127, "git executable not found") from e
        if check and cp.returncode != 0:
            raise VersionControlCommandFailed(cmd, cp.returncode, cp.stderr)
        return cp

    def ok(self, *args: str) -> bool:
        """True when the command exits zero; never raises for a non-zero exit."""
        try:
            return self.run(*args, check=False).returncode == 0
        except VersionControlCommandFailed:
            return False

    def output(self, *args: str) -> str:
        return self.run(*args).stdout.strip()

    # ---- repository state ----
    def is_repo(self) -> bool:
        return self.ok("rev-parse", "--is-inside-work-tree")

    def current_branch(self) -> str:
        try:
            # symbolic-ref also works on an unborn branch (no commits yet)
            cp = self.run("symbolic-ref", "--short", "-q", "HEAD", check=False)
            if cp.returncode == 0 and cp.stdout.strip():
                return cp.stdout.strip()
            return self.output("rev-parse", "--abbrev-ref", "HEAD")
        except VersionControlCommandFailed as e:
            raise NotAGitRepository(self.cwd) from e

    def git_dir(self) -> Path:
        p = Path(self.output("rev-parse", "--git-dir"))
        return p if p.is_absolute() else self.cwd / p

    def has_changes(self) -> bool:
        """False when the working tree matches HEAD (`git diff-index --quiet HEAD --`)."""
        self.run("update-index", "-q", "--refresh", check=False)
        if self.run("diff-index", "--quiet", "HEAD", "--", check=False).returncode != 0:
            return True
        # untracked files are invisible to diff-index
        return bool(self.output("ls-files", "--others", "--exclude-standard"))

    def status(self) -> str:
        return self.run("status", check=False).stdout

    # ---- commits ----
    def add_all(self) -> None:
        self.run("add", ".")

    def commit(self, message: str) -> None:
        self.run("commit", "-m", message)

    def has_staged_changes(self) -> bool:
        return self.run("diff", "--cached", "--quiet", check=False).returncode != 0

    def reset_soft(self, ref: str = "HEAD~1") -> None:
        self.run("reset", "--soft", ref)

    # ---- branches ----
    def branch_exists(self, name: str) -> bool:
        return self.ok("show-ref", "--verify", "--quiet", f"refs/heads/{name}")

    def is_valid_branch_name(self, name: str) -> bool:
        return self.ok("check-ref-format", "--branch", name)

    def create_branch(self, name: str) -> None:
        self.run("checkout", "-b", name)

    def checkout(self, name: str) -> None:
        self.run("checkout", name)

    def delete_branch(self, name: str) -> None:
        self.run("branch", "-D", name)

    def branches(self) -> List[str]:
        out = self.output("branch", "--format=%(refname:short)")
        return [ln.strip() for ln in out.splitlines() if ln.strip()]

    def default_branch(self) -> str:
        """Remote HEAD branch, else `main`, else `master`, else the current branch."""
        cp = self.run("symbolic-ref", f"refs/remotes/{self.remote}/HEAD", check=False)
        prefix = f"refs/remotes/{self.remote}/"
        ref = cp.stdout.strip()
        if cp.returncode == 0 and ref.startswith(prefix):
            return ref[len(prefix) :]
        for candidate in ("main", "master"):
            if self.branch_exists(candidate):
                return candidate
        return self.current_branch()

    # ---- tags ----
    def tag_exists(self, name: str) -> bool:
        return self.ok("show-ref", "--verify", "--quiet", f"refs/tags/{name}")

    def create_tag(self, name: str, message: str) -> None:
        self.run("tag", "-a", name, "-m", message)

    def delete_tag(self, name: str) -> None:
        self.run("tag", "-d", name)

    def tags(self) -> List[str]:
        return [t for t in self.output("tag", "--list").splitlines() if t.strip()]

    # ---- remote ----
    def has_remote(self) -> bool:
        return self.ok("remote", "get-url", self.remote)

    def push(self, ref: str, upstream: bool = False) -> None:
        args = ["push"]
        if upstream:
            args.append("-u")
        self.run(*args, self.remote, ref)

    def push_branch(self, branch: str) -> bool:
        """Push `branch`; falls back to a first push with upstream. Returns True if the fallback was used."""
        try:
            self.push(branch)
            return False
        except VersionControlCommandFailed:
            self.push(branch, upstream=True)
            return True

    def delete_remote_ref(self, ref: str) -> None:
        self.run("push", self.remote, "--delete", ref)

    def remote_url(self) -> Optional[str]:
        cp = self.run("remote", "get-url", self.remote, check=False)
        return cp.stdout.strip() if cp.returncode == 0 else None

    def unstage(self, path: Path) -> None:
        self.run("reset", "-q", "--", str(path), check=False)

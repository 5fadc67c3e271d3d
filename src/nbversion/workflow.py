# nbversion/workflow.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Versioning workflow.

`VersionManager` sequences the detector, composer, notebook edits and git
calls into the three operator-facing flows:

  run()               version the project (copy notebook, commit, branch, tag, push)
  rollback_version()  remove a version's branch, tag and notebooks
  interactive_fix()   menu for manual recovery after a failed run

Every recoverable failure inside a step goes through `prompts.decide`.
What a run has changed so far is kept in a `RunJournal`, which is what
"rollback and exit" undoes.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .composer import (
    Composition,
    build_banner,
    compose_next_name,
    label_number,
    needs_short_description,
    normalize_label,
)
from .config import Settings
from .conventions import classify
from .detector import VersionState, detect_latest_notebook, list_notebooks
from .errors import (
    BranchAlreadyExists,
    DocumentParseFailed,
    InvalidNotebookName,
    NbVersionError,
    NoSourceNotebookFound,
    NotebookDirectoryMissing,
    NotebookWriteFailed,
    VersionControlCommandFailed,
)
from .git import Git
from .logging_utils import JsonlLogger, console, error, get_logger, info, success, summary_table, warning
from .notebook import copy_notebook, create_notebook, prepend_banner, prepend_script_banner
from .prompts import Choice, Prompter, decide

log = get_logger("nbversion.workflow")

VERSION_BRANCH_RE = re.compile(r"^v\d+")


class WorkflowExit(Exception):
    """Stop the workflow with an exit code (0 = cancelled, 1 = failure)."""

    def __init__(self, code: int = 0, message: str = ""):
        super().__init__(message or f"exit {code}")
        self.code = code


@dataclass
class RunJournal:
    """Side effects of the current run, in the order they happened."""

    original_branch: str
    label: str = ""
    created_files: List[Path] = field(default_factory=list)
    commits_on_original: int = 0
    branch_created: Optional[str] = None
    branch_pushed: bool = False
    tag_created: Optional[str] = None
    tag_pushed: bool = False


@dataclass
class VersionResult:
    label: str
    description: str
    notebook: Optional[Path] = None
    branch: Optional[str] = None
    tag: Optional[str] = None
    cancelled: bool = False


@dataclass
class RollbackAction:
    action: str
    target: str
    status: str  # "done" | "absent" | "failed"
    detail: str = ""


@dataclass
class RollbackReport:
    label: str
    actions: List[RollbackAction] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failed(self) -> List[RollbackAction]:
        return [a for a in self.actions if a.status == "failed"]


class VersionManager:
    def __init__(
        self,
        root: Path,
        settings: Settings,
        prompter: Prompter,
        git: Optional[Git] = None,
        events: Optional[JsonlLogger] = None,
        now: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.root = Path(root)
        self.settings = settings
        self.prompter = prompter
        self.git = git or Git(self.root, remote=settings.remote)
        self.events = events or JsonlLogger(None)
        self.now = now

    @property
    def notebooks_dir(self) -> Path:
        return self.settings.notebooks_path(self.root)

    # -------------------------------------------------------------------------
    # Step plumbing
    # -------------------------------------------------------------------------
    def _step(self, name: str, action: Callable[[], None], journal: RunJournal) -> bool:
        """Run `action` until it succeeds or the operator gives up. Returns True on success."""
        while True:
            try:
                action()
                self.events.log("step", step=name, status="ok", label=journal.label)
                return True
            except NbVersionError as e:
                if not e.recoverable:
                    raise
                log.warning("%s failed: %s", name, e)
                choice = decide(self.prompter, e)
                self.events.log("step", step=name, status="failed", choice=choice.value, error=str(e))
                if choice is Choice.RETRY:
                    continue
                if choice is Choice.ROLLBACK:
                    self.rollback_run(journal)
                    raise WorkflowExit(1, f"rolled back after: {e}")
                return False

    # -------------------------------------------------------------------------
    # Overview
    # -------------------------------------------------------------------------
    def show_overview(self, branch: str, state: VersionState) -> None:
        info(f"Project: {self.root.name}")
        info(f"Current branch: {branch}")
        url = self.git.remote_url()
        if url:
            info(f"Remote: {self.settings.remote} ({url})")
        if not self.notebooks_dir.is_dir():
            warning("No notebooks directory found")
            info(f"Will create notebooks directory and suggested first version: {state.suggested_next}")
            return
        console().print()
        info("Current notebooks:")
        if not state.scanned:
            console().print("  (none)")
        for item in state.scanned:
            if item.filename == state.latest_filename:
                console().print(f"  📓 {escape(item.filename)} [bold]← Latest ({state.latest_label})[/bold]")
            else:
                console().print(f"  📓 {escape(item.filename)}")
        if state.found:
            info(f"Detected latest version: {state.latest_label} in '{state.latest_filename}'")
            info(f"Suggested next version: {state.suggested_next}")
        else:
            warning("No versioned notebooks found in current naming patterns")
            info(f"Available notebooks will be copied as: {state.suggested_next}")

    # -------------------------------------------------------------------------
    # Step 1: notebook copy
    # -------------------------------------------------------------------------
    def _ensure_notebooks_dir(self, journal: RunJournal) -> bool:
        if self.notebooks_dir.is_dir():
            return True
        choice = decide(self.prompter, NotebookDirectoryMissing(self.notebooks_dir))
        if choice is Choice.ROLLBACK:
            self.rollback_run(journal)
            raise WorkflowExit(1, "rolled back: notebooks directory missing")
        if choice is Choice.SKIP:
            return False
        self.notebooks_dir.mkdir(parents=True, exist_ok=True)
        success("Created notebooks directory")
        return True

    def compose(self, label: str, state: VersionState) -> Composition:
        short = None
        if needs_short_description(state):
            short = self.prompter.ask(
                f"Enter description for {label} (e.g., 'improved')",
                default=self.settings.default_short_description,
            )
        try:
            return compose_next_name(label, state, short or self.settings.default_short_description)
        except ValueError as e:
            raise InvalidNotebookName(str(e)) from e

    def copy_notebook_step(self, label: str, description: str, state: VersionState, journal: RunJournal) -> Optional[Path]:
        source_path = self.notebooks_dir / state.latest_filename if state.latest_filename else None
        if source_path is None or not source_path.is_file():
            warning(str(NoSourceNotebookFound(self.notebooks_dir)))
            state = VersionState()
        comp = self.compose(label, state)
        if comp.is_noop:
            warning("Source and target notebook names are the same")
            return None
        target = self.notebooks_dir / comp.target
        if target.exists():
            warning(f"notebooks/{comp.target} already exists; leaving it untouched")
            return None

        banner = build_banner(label, description, self.now())
        if comp.source is not None and source_path is not None and source_path.is_file():
            try:
                copy_notebook(source_path, target)
            except OSError as e:
                raise NotebookWriteFailed(target, str(e)) from e
            journal.created_files.append(target)
            success(f"Created: notebooks/{comp.target} (copied from {comp.source})")
            try:
                prepend_banner(target, banner)
                info("Version info added to notebook")
            except DocumentParseFailed as e:
                warning(str(e))
        else:
            try:
                create_notebook(target, banner)
            except OSError as e:
                raise NotebookWriteFailed(target, str(e)) from e
            journal.created_files.append(target)
            success(f"Created: notebooks/{comp.target} (new notebook)")
        return target

    # -------------------------------------------------------------------------
    # Main flow
    # -------------------------------------------------------------------------
    def run(self, label: Optional[str] = None, description: Optional[str] = None) -> VersionResult:
        branch = self.git.current_branch()
        state = detect_latest_notebook(self.notebooks_dir, self.settings.notebook_glob)
        self.show_overview(branch, state)

        if not self.git.has_changes():
            warning("No changes detected. Make sure you've saved your model improvements!")
            if not self.prompter.confirm("Continue anyway?", default=False):
                console().print("Cancelled.")
                return VersionResult(label or "", description or "", cancelled=True)

        raw_label = label or self.prompter.ask("Version name", default=state.suggested_next)
        try:
            label = normalize_label(raw_label)
        except ValueError as e:
            error(str(e))
            raise WorkflowExit(1, str(e)) from e
        if not self.git.is_valid_branch_name(label):
            error(f"'{label}' is not a valid git branch name.")
            raise WorkflowExit(1, f"invalid branch name: {label}")
        description = description or self.prompter.ask("What did you improve in this version?", default="")
        description = description.strip() or self.settings.default_description

        console().print()
        info(f"Creating version: {label}")
        info(f"Description: {description}")
        console().print()
        if not self.prompter.confirm("Proceed?", default=True):
            console().print("Cancelled.")
            return VersionResult(label, description, cancelled=True)

        journal = RunJournal(original_branch=branch, label=label)
        result = VersionResult(label, description)
        self.events.log("run", label=label, description=description, branch=branch)

        # Step 1
        console().print("\n[bold]Step 1:[/bold] Creating versioned notebook copy...")
        if self._ensure_notebooks_dir(journal):

            def _copy() -> None:
                result.notebook = self.copy_notebook_step(label, description, state, journal)

            self._step("notebook_copy", _copy, journal)

        # Step 2
        console().print("\n[bold]Step 2:[/bold] Committing current model and notebooks...")

        def _commit() -> None:
            self.git.add_all()
            self.git.commit(f"feat: {label} - {description}")
            journal.commits_on_original += 1
            success("Changes committed")

        self._step("commit", _commit, journal)

        # Step 3
        console().print("\n[bold]Step 3:[/bold] Pushing current branch...")
        has_remote = self.git.has_remote()
        if has_remote:

            def _push_current() -> None:
                first = self.git.push_branch(branch)
                success("Current branch pushed (first time)" if first else "Current branch pushed")

            self._step("push_current", _push_current, journal)
        else:
            warning(f"No remote '{self.settings.remote}' configured; skipping push")

        # Step 4
        console().print(f"\n[bold]Step 4:[/bold] Creating new branch '{label}'...")
        self._create_branch(label, journal)
        result.branch = label

        # Step 5
        console().print("\n[bold]Step 5:[/bold] Updating version in project files...")
        self.update_scripts(label, description)

        # Step 6
        console().print("\n[bold]Step 6:[/bold] Committing version updates...")
        self.git.add_all()
        if self.git.has_staged_changes():

            def _commit_updates() -> None:
                self.git.commit(f"docs: initialize {label} codebase")
                success("Version updates committed")

            self._step("commit_updates", _commit_updates, journal)
        else:
            info("No additional changes to commit")

        # Step 7
        console().print("\n[bold]Step 7:[/bold] Pushing new branch to remote...")
        if has_remote:

            def _push_new() -> None:
                self.git.push(f"refs/heads/{label}", upstream=True)
                journal.branch_pushed = True
                success("New branch pushed to remote")

            if not self._step("push_branch", _push_new, journal):
                warning(f"You can push later with: git push -u {self.settings.remote} {label}")
        else:
            warning(f"You can push later with: git push -u {self.settings.remote} {label}")

        # Step 8
        console().print("\n[bold]Step 8:[/bold] Creating version tag...")
        try:
            self.git.create_tag(label, f"{label}: {description}")
            journal.tag_created = label
            result.tag = label
            success(f"Tag '{label}' created")
        except VersionControlCommandFailed as e:
            log.warning("tag creation failed: %s", e)
            warning("Tag might already exist")
        if result.tag and has_remote:

            def _push_tag() -> None:
                self.git.push(f"refs/tags/{label}")
                journal.tag_pushed = True
                success("Tag pushed to remote")

            if not self._step("push_tag", _push_tag, journal):
                warning("Tag not pushed to remote")

        self.events.log("done", label=label, notebook=str(result.notebook) if result.notebook else None)
        self.show_summary(result)
        return result

    def _create_branch(self, label: str, journal: RunJournal) -> None:
        if self.git.branch_exists(label):
            warning(str(BranchAlreadyExists(label)) + "!")
            if not self.prompter.confirm("Switch to existing branch?", default=False):
                console().print("Cancelled.")
                raise WorkflowExit(0, "branch exists")
            self.git.checkout(label)
            success("Switched to existing branch")
            return
        try:
            self.git.create_branch(label)
        except VersionControlCommandFailed as e:
            error("Failed to create branch")
            raise WorkflowExit(1, str(e)) from e
        journal.branch_created = label
        success(f"New branch '{label}' created")

    def update_scripts(self, label: str, description: str) -> List[Path]:
        """Prepend the version comment to root-level scripts; returns the files changed."""
        exts = {e.lower() for e in self.settings.script_extensions}
        changed: List[Path] = []
        for path in sorted(self.root.iterdir()):
            if not path.is_file() or path.suffix.lower() not in exts:
                continue
            try:
                updated = prepend_script_banner(path, label, description, self.now())
            except DocumentParseFailed as e:
                log.warning("script banner skipped: %s", e)
                warning(f"{e}; skipping")
                continue
            if updated:
                changed.append(path)
                success(f"Updated {path.name} with version info")
        return changed

    def show_summary(self, result: VersionResult) -> None:
        notebook = f"{self.settings.notebooks_dir}/{result.notebook.name}" if result.notebook else "(none)"
        t = Table(box=box.SIMPLE, show_header=False)
        t.add_row("✨ New version", result.label)
        t.add_row("📝 Description", escape(result.description))
        t.add_row("🌿 Branch", result.branch or "-")
        t.add_row("🏷️ Tag", result.tag or "-")
        t.add_row("📓 Notebook", notebook)
        t.add_row("📁 Directory", str(self.root))
        console().print()
        console().print(Panel(t, title="Model versioning completed!", box=box.ROUNDED))
        console().print("Your next steps:")
        console().print(f"  🔬 Continue improving your model in: {notebook}")
        console().print("  🚀 Run this tool again when ready for the next version")
        console().print("\n🔧 If something went wrong:")
        console().print(f"  nbversion --rollback {result.label}    # Rollback this version")
        console().print("  nbversion --fix                   # Interactive fix mode")

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------
    def _attempt(self, report: RollbackReport, action: str, target: str, fn: Callable[[], None]) -> None:
        try:
            fn()
        except (NbVersionError, OSError) as e:
            report.actions.append(RollbackAction(action, target, "failed", str(e)))
            log.warning("rollback %s %s failed: %s", action, target, e)
            return
        report.actions.append(RollbackAction(action, target, "done"))
        success(f"{action}: {target}")

    def rollback_run(self, journal: RunJournal) -> RollbackReport:
        """Undo what the current run recorded in `journal`."""
        console().print()
        warning("Rolling back changes...")
        report = RollbackReport(journal.label)
        git = self.git
        if journal.tag_created:
            tag = journal.tag_created
            self._attempt(report, "Deleted tag", tag, lambda: git.delete_tag(tag))
            if journal.tag_pushed:
                self._attempt(report, "Deleted remote tag", tag, lambda: git.delete_remote_ref(f"refs/tags/{tag}"))
        if journal.branch_created:
            branch = journal.branch_created
            self._attempt(report, "Checked out", journal.original_branch, lambda: git.checkout(journal.original_branch))
            self._attempt(report, "Deleted branch", branch, lambda: git.delete_branch(branch))
            if journal.branch_pushed:
                self._attempt(
                    report, "Deleted remote branch", branch, lambda: git.delete_remote_ref(f"refs/heads/{branch}")
                )
        if journal.commits_on_original:
            n = journal.commits_on_original
            # an accepted switch to a pre-existing branch leaves us off the original one
            if git.current_branch() != journal.original_branch:
                self._attempt(
                    report, "Checked out", journal.original_branch, lambda: git.checkout(journal.original_branch)
                )
            self._attempt(report, "Rolled back commit(s)", f"HEAD~{n}", lambda: git.reset_soft(f"HEAD~{n}"))
        for path in journal.created_files:

            def _remove(p: Path = path) -> None:
                git.unstage(p)
                p.unlink(missing_ok=True)

            self._attempt(report, "Removed", path.name, _remove)
        self.events.log("rollback_run", label=journal.label, failed=len(report.failed))
        return report

    def version_notebooks(self, label: str) -> List[Path]:
        """Notebooks whose filename carries the version of `label` (conventions 1-5)."""
        number = label_number(label)
        found = []
        for name in list_notebooks(self.notebooks_dir, self.settings.notebook_glob):
            conv, version = classify(name)
            if conv is None or conv.rule > 5 or version is None:
                continue
            if number.isdigit() and version == int(number):
                found.append(self.notebooks_dir / name)
        return found

    def rollback_version(self, label: str, confirm: bool = True) -> RollbackReport:
        """
        Delete the local/remote branch, local/remote tag and notebooks of `label`.

        Each action runs independently; anything already gone is reported as
        "absent", so rolling back twice is harmless.
        """
        label = normalize_label(label)
        report = RollbackReport(label)
        console().print(f"🔄 Rolling back version: {label}\n")
        if confirm and not self.prompter.confirm(
            "This will delete branch, tag, and notebook. Continue?", default=False
        ):
            console().print("Cancelled.")
            report.cancelled = True
            return report

        git = self.git
        if git.current_branch() == label:
            main = git.default_branch()
            self._attempt(report, "Checked out", main, lambda: git.checkout(main))

        if git.branch_exists(label):
            self._attempt(report, "Local branch deleted", label, lambda: git.delete_branch(label))
        else:
            report.actions.append(RollbackAction("Local branch deleted", label, "absent"))

        has_remote = git.has_remote()
        if has_remote:
            self._remote_delete(report, "Remote branch deleted", label, f"refs/heads/{label}")

        if git.tag_exists(label):
            self._attempt(report, "Local tag deleted", label, lambda: git.delete_tag(label))
        else:
            report.actions.append(RollbackAction("Local tag deleted", label, "absent"))

        if has_remote:
            self._remote_delete(report, "Remote tag deleted", label, f"refs/tags/{label}")

        notebooks = self.version_notebooks(label)
        if not notebooks:
            report.actions.append(RollbackAction("Deleted notebook", label, "absent"))
        for path in notebooks:
            self._attempt(report, "Deleted notebook", path.name, lambda p=path: p.unlink(missing_ok=True))

        self.events.log(
            "rollback",
            label=label,
            actions=[{"action": a.action, "target": a.target, "status": a.status} for a in report.actions],
        )
        console().print()
        summary_table(f"Rollback {label}", {f"{a.action}: {a.target}": a.status for a in report.actions})
        if report.failed:
            warning(f"Rollback finished with {len(report.failed)} failed action(s)")
        else:
            success("Rollback completed!")
        return report

    def _remote_delete(self, report: RollbackReport, action: str, label: str, ref: str) -> None:
        try:
            self.git.delete_remote_ref(ref)
        except VersionControlCommandFailed as e:
            # most often the ref was never pushed
            log.info("remote delete of %s: %s", ref, e)
            report.actions.append(RollbackAction(action, label, "absent", str(e)))
            return
        report.actions.append(RollbackAction(action, label, "done"))
        success(f"{action}: {label}")

    # -------------------------------------------------------------------------
    # Fix mode
    # -------------------------------------------------------------------------
    FIX_MENU = (
        ("1", "Notebook copying failed"),
        ("2", "Git commit failed"),
        ("3", "Branch creation failed"),
        ("4", "Push to remote failed"),
        ("5", "Tag creation failed"),
        ("6", "Want to rollback everything"),
    )

    def interactive_fix(self) -> Optional[RollbackReport]:
        console().print(Panel.fit("🔧 Interactive Fix Mode", box=box.ROUNDED))
        console().print("What went wrong?")
        for key, text in self.FIX_MENU:
            console().print(f"  {key}) {text}")
        try:
            choice = self.prompter.choose("Choose issue", [k for k, _ in self.FIX_MENU])
        except EOFError:
            warning("No choice made")
            return None
        git = self.git

        if choice == "1":
            console().print("Fixing notebook copying...")
            if not self.notebooks_dir.is_dir():
                self.notebooks_dir.mkdir(parents=True, exist_ok=True)
                success("Created notebooks directory")
            names = list_notebooks(self.notebooks_dir, self.settings.notebook_glob)
            console().print("Available notebooks:")
            if not names:
                console().print("  No notebooks found")
            for name in names:
                console().print(f"  📓 {escape(name)}")
        elif choice == "2":
            console().print("Fixing git commit...")
            console().print(git.status(), markup=False, highlight=False)
            console().print("Run: git add . && git commit -m 'your message'")
        elif choice == "3":
            console().print("Fixing branch creation...")
            console().print("Current branches:")
            for b in git.branches():
                console().print(f"  {escape(b)}")
        elif choice == "4":
            console().print("Fixing remote push...")
            console().print(f"Try: git push -u {self.settings.remote} {git.current_branch()}")
        elif choice == "5":
            console().print("Fixing tag creation...")
            console().print("Current tags:")
            for t in git.tags():
                console().print(f"  {escape(t)}")
        elif choice == "6":
            versions = [b for b in git.branches() if VERSION_BRANCH_RE.match(b)]
            console().print("Available versions to rollback:")
            if not versions:
                console().print("  No version branches found")
            for b in versions:
                console().print(f"  {escape(b)}")
            target = self.prompter.ask("Enter version to rollback (e.g., v1)", default="").strip()
            if target:
                return self.rollback_version(target)
        return None

# nbversion/cli.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
nbversion command line.

  nbversion [LABEL] [DESCRIPTION]     version the project (prompts for anything missing)
  nbversion --rollback LABEL          delete a version's branch, tag and notebooks
  nbversion --fix                     interactive recovery menu

The project root is the current directory. Log level and an optional log file
come from `nbversion.yaml` or NBVERSION_LOG_LEVEL / NBVERSION_LOG_FILE.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .config import Settings, load_settings
from .errors import ConfigError, NbVersionError, NotAGitRepository
from .git import Git
from .logging_utils import JsonlLogger, console, error, init_logger
from .prompts import ConsolePrompter, Prompter
from .workflow import VersionManager, WorkflowExit

APP = typer.Typer(
    name="nbversion",
    help="Notebook-aware model versioning on top of git: copy notebook, commit, branch, tag, push.",
    add_completion=False,
)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def build_manager(root: Path, settings: Settings, prompter: Optional[Prompter] = None) -> VersionManager:
    """Wire git, the event log and the prompter for `root`; raises NotAGitRepository."""
    git = Git(root, remote=settings.remote)
    if not git.is_repo():
        raise NotAGitRepository(root)
    events = JsonlLogger(settings.events_path(git.git_dir()))
    return VersionManager(root, settings, prompter or ConsolePrompter(), git=git, events=events)


@APP.command(context_settings=CONTEXT_SETTINGS)
def version(
    label: Optional[str] = typer.Argument(None, help="Version label, e.g. v3 (prompted when omitted)"),
    description: Optional[str] = typer.Argument(None, help="What changed in this version"),
    rollback: bool = typer.Option(False, "--rollback", help="Roll back the version given as LABEL"),
    fix: bool = typer.Option(False, "--fix", help="Interactive fix mode"),
) -> None:
    """Notebook-aware model versioning on top of git: copy notebook, commit, branch, tag, push."""
    if rollback and not (label or "").strip():
        error("Please specify version to rollback (e.g., --rollback v2)")
        raise typer.Exit(code=1)

    root = Path.cwd()
    try:
        settings = load_settings(root)
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(code=1)
    init_logger(settings.log_path(root), level=settings.log_level)

    try:
        manager = build_manager(root, settings)
        if fix:
            manager.interactive_fix()
        elif rollback:
            report = manager.rollback_version(label)
            if report.failed:
                raise typer.Exit(code=1)
        else:
            manager.run(label, description)
    except NotAGitRepository as e:
        error(str(e))
        raise typer.Exit(code=1)
    except WorkflowExit as e:
        raise typer.Exit(code=e.code)
    except (ValueError, NbVersionError) as e:
        error(str(e))
        raise typer.Exit(code=1)


def main() -> None:  # pragma: no cover
    try:
        APP()
    except KeyboardInterrupt:
        console().print("\n[red]Interrupted[/red]")
        raise SystemExit(130)


if __name__ == "__main__":  # pragma: no cover
    main()

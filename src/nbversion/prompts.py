# nbversion/prompts.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Interactive shell around the workflow.

The workflow never reads the terminal directly; it talks to a `Prompter`.
`ConsolePrompter` asks through Rich prompts; tests pass a scripted one.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Protocol

from rich.prompt import Confirm, Prompt

from .errors import NbVersionError
from .logging_utils import console, error


class Choice(str, Enum):
    RETRY = "retry"
    SKIP = "skip"
    ROLLBACK = "rollback"
    CONTINUE = "continue"


DECISION_MENU = (
    ("1", "Try again", Choice.RETRY),
    ("2", "Skip this step", Choice.SKIP),
    ("3", "Rollback and exit", Choice.ROLLBACK),
    ("4", "Continue anyway", Choice.CONTINUE),
)


class Prompter(Protocol):
    def ask(self, question: str, default: str = "") -> str:
        ...

    def confirm(self, question: str, default: bool = False) -> bool:
        ...

    def choose(self, question: str, choices: List[str], default: Optional[str] = None) -> str:
        ...


class ConsolePrompter:
    """
    Rich prompts on the shared console.

    At end of input `ask` and `confirm` answer with their default. `choose`
    raises EOFError instead, so a menu is never answered without an operator.
    """

    def ask(self, question: str, default: str = "") -> str:
        try:
            return Prompt.ask(question, default=default, show_default=bool(default), console=console())
        except EOFError:
            return default

    def confirm(self, question: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(question, default=default, console=console())
        except EOFError:
            return default

    def choose(self, question: str, choices: List[str], default: Optional[str] = None) -> str:
        return Prompt.ask(question, choices=choices, default=default, console=console())


def decide(prompter: Prompter, err: NbVersionError) -> Choice:
    """
    The single decision point every recoverable failure goes through.

    With no input left to read the run is rolled back; a failed step is
    never retried without an answer.
    """
    error(str(err))
    console().print("\nWhat would you like to do?")
    for key, text, _ in DECISION_MENU:
        console().print(f"  {key}) {text}")
    try:
        answer = prompter.choose("Choose option", [k for k, _, _ in DECISION_MENU], default="1")
    except EOFError:
        error("No answer on input; rolling back")
        return Choice.ROLLBACK
    for key, _, choice in DECISION_MENU:
        if answer == key:
            return choice
    return Choice.ROLLBACK

# nbversion/logging_utils.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Console output and logging helpers.

• `console()`: the shared Rich console used for operator-facing output.
• `success()/error()/info()/warning()`: one-line status messages.
• `init_logger()/get_logger()`: RichHandler on a TTY, plain StreamHandler otherwise;
  optional plain file handler. Repeated calls never duplicate handlers.
• `JsonlLogger`: append-only JSON-lines event log for auditability.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

_console = Console(highlight=False)
_LOGGER_CACHE: Dict[str, logging.Logger] = {}


def console() -> Console:
    return _console


def success(msg: str) -> None:
    _console.print(f"[green]✅ {escape(msg)}[/green]")


def error(msg: str) -> None:
    _console.print(f"[red]❌ {escape(msg)}[/red]")


def info(msg: str) -> None:
    _console.print(f"[blue]ℹ️  {escape(msg)}[/blue]")


def warning(msg: str) -> None:
    _console.print(f"[yellow]⚠️  {escape(msg)}[/yellow]")


def summary_table(title: str, mapping: Mapping[str, Any]) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for k, v in mapping.items():
        table.add_row(escape(str(k)), escape(str(v)))
    _console.print(table)


def _is_tty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _fmt_plain() -> logging.Formatter:
    # timestamp | level | name | message
    return logging.Formatter(fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s", datefmt="%H:%M:%S")


def init_logger(
    file_path: Optional[Union[str, Path]] = None,
    *,
    level: str = "WARNING",
    rich: bool = True,
    name: str = "nbversion",
) -> logging.Logger:
    """
    Configure the `nbversion` logger (console + optional file handler).

    Operator-facing progress goes through `console()`; the logger carries
    diagnostics (git commands at DEBUG, failures at WARNING/ERROR).
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    logger.propagate = False

    # replace, never stack: handlers bind the stderr of the current invocation
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if rich and _is_tty(sys.stderr):
        ch: logging.Handler = RichHandler(
            console=Console(stderr=True), show_time=False, show_path=False, markup=False
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(_fmt_plain())
    logger.addHandler(ch)

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), mode="a", encoding="utf-8")
        fh.setFormatter(_fmt_plain())
        logger.addHandler(fh)

    for h in logger.handlers:
        h.setLevel(lvl)
    _LOGGER_CACHE[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child loggers propagate to the `nbversion` logger configured by init_logger()."""
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]


class JsonlLogger:
    """
    Minimal JSONL event logger. Always appends; creates parent dirs.
    A path of None disables writing (e.g. outside a git repository).
    """

    def __init__(self, path: Optional[Union[str, Path]]):
        self.path = Path(path) if path else None

    def log(self, event: str, **fields: Any) -> None:
        if self.path is None:
            return
        payload = {"ts": datetime.now(timezone.utc).isoformat(timespec="seconds"), "event": event, **fields}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        except OSError:
            get_logger("nbversion.events").debug("Failed to write JSONL event.", exc_info=True)

# nbversion/composer.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Next-name composer.

Given the detector's `VersionState` and a target version label, synthesize
the filename of the next notebook in the same convention as the latest one,
and build the banner cell that goes at the top of the copy.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .conventions import DEFAULT_SHORT_DESCRIPTION, Convention, default_name, split_ext
from .detector import VersionState

BANNER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
PATH_SEPARATORS = ("/", "\\")


def normalize_label(label: str) -> str:
    """Give a version label its leading "v": "2" -> "v2", "V2" -> "v2", "v2" -> "v2"."""
    label = label.strip()
    if not label:
        raise ValueError("Version label must not be empty.")
    if any(ch.isspace() for ch in label):
        raise ValueError(f"Version label {label!r} must not contain whitespace.")
    if any(sep in label for sep in PATH_SEPARATORS):
        raise ValueError(f"Version label {label!r} must not contain a path separator.")
    if label.startswith("v"):
        return label
    if label.startswith("V"):
        return "v" + label[1:]
    return "v" + label


def label_number(label: str) -> str:
    """The part of a label that goes into filenames: "v5" -> "5"."""
    return normalize_label(label)[1:]


@dataclass(frozen=True)
class Composition:
    """Where the next notebook comes from and what it will be called."""

    label: str
    target: str
    source: Optional[str] = None
    convention: Optional[Convention] = None

    @property
    def is_noop(self) -> bool:
        return self.source is not None and self.source == self.target

    @property
    def uses_default(self) -> bool:
        return self.convention is None or not self.convention.composable


def needs_short_description(state: VersionState) -> bool:
    return state.convention is not None and state.convention.takes_description


def compose_next_name(
    label: str,
    state: VersionState,
    short_description: Optional[str] = None,
) -> Composition:
    """
    Reuse the latest notebook's convention for `label`.

    Falls back to `V<N>_updated.<ext>` when no notebook matched or the
    convention has no formatter (the loose and bare "Model" conventions).
    Raises ValueError when the short description contains a path separator.
    """
    label = normalize_label(label)
    number = label_number(label)
    desc = (short_description or "").strip() or DEFAULT_SHORT_DESCRIPTION
    if any(sep in desc for sep in PATH_SEPARATORS):
        raise ValueError(f"Short description {desc!r} must not contain a path separator.")
    source = state.latest_filename
    conv = state.convention
    if source is None or conv is None or not conv.composable:
        return Composition(label=label, target=default_name(number, split_ext(source)), source=source, convention=None)
    return Composition(label=label, target=conv.format(source, number, desc), source=source, convention=conv)


# -----------------------------------------------------------------------------
# Banner
# -----------------------------------------------------------------------------
def banner_lines(label: str, description: str, created: Optional[dt.datetime] = None) -> List[str]:
    created = created or dt.datetime.now()
    return [
        f"# {label} - {description}\n",
        f"**Created:** {created.strftime(BANNER_TIME_FORMAT)}\n",
        "**Previous Version:** Copied and updated\n",
        "\n",
        "## Changes in this version:\n",
        f"- {description}\n",
    ]


def build_banner(label: str, description: str, created: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """Markdown cell (nbformat v4 shape) announcing a new notebook version."""
    return {
        "cell_type": "markdown",
        "metadata": {},
        "source": banner_lines(normalize_label(label), description, created),
    }

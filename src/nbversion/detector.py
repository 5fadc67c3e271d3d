# nbversion/detector.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Version pattern detector.

Scans a notebook directory, classifies every filename against the ordered
conventions in `nbversion.conventions`, and reports the highest version found.

Selection rule
--------------
• Filenames are sorted before scanning, so the result never depends on the
  filesystem's enumeration order.
• Strictly the highest version number wins.
• On equal numbers the most specific convention (lowest rule) wins, so a bare
  `Model.ipynb` (version 0) only wins when nothing else matched.
• Remaining ties keep the first file in sorted order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .conventions import Convention, classify

# ranks below every real rule
UNMATCHED_RULE = 99


@dataclass(frozen=True)
class Classification:
    """One filename and what the detector made of it."""

    filename: str
    convention: Optional[Convention] = None
    version: Optional[int] = None

    @property
    def matched(self) -> bool:
        return self.convention is not None

    @property
    def rank(self) -> Tuple[int, int]:
        """Higher is better: the version first, then the lower rule number."""
        version = self.version if self.version is not None else -1
        rule = self.convention.rule if self.convention is not None else UNMATCHED_RULE
        return (version, -rule)


@dataclass(frozen=True)
class VersionState:
    """Immutable result of one detection pass."""

    highest: int = 0
    latest_filename: Optional[str] = None
    convention: Optional[Convention] = None
    scanned: Tuple[Classification, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.latest_filename is not None

    @property
    def latest_label(self) -> Optional[str]:
        return f"v{self.highest}" if self.found else None

    @property
    def suggested_next(self) -> str:
        return f"v{self.highest + 1}" if self.found else "v1"


def _beats(candidate: Classification, best: Optional[Classification]) -> bool:
    return best is None or candidate.rank > best.rank


def detect_versions(filenames: Iterable[str]) -> VersionState:
    """Pure detection over a collection of filenames."""
    scanned: List[Classification] = []
    best: Optional[Classification] = None
    for name in sorted(set(filenames)):
        conv, version = classify(name)
        item = Classification(name, conv, version)
        scanned.append(item)
        if item.matched and _beats(item, best):
            best = item
    if best is None:
        return VersionState(scanned=tuple(scanned))
    return VersionState(
        highest=best.version or 0,
        latest_filename=best.filename,
        convention=best.convention,
        scanned=tuple(scanned),
    )


def list_notebooks(directory: Path, pattern: str = "*.ipynb") -> List[str]:
    """Filenames in `directory` matching `pattern`; empty when the directory is missing."""
    if not directory.is_dir():
        return []
    return sorted(p.name for p in directory.glob(pattern) if p.is_file())


def detect_latest_notebook(directory: Path, pattern: str = "*.ipynb") -> VersionState:
    return detect_versions(list_notebooks(directory, pattern))

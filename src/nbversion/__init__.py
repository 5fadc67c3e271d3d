# nbversion/__init__.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
nbversion: Notebook Version Manager

Versions machine-learning notebooks alongside a Git repository: detects the
latest versioned notebook, copies it forward under the next version name with
a markdown banner, then commits, branches, tags, and pushes.

Exposes:
    __version__ : str
        Package version identifier.
    __all__ : list[str]
        Public submodules.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "errors",
    "config",
    "logging_utils",
    "prompts",
    "conventions",
    "detector",
    "composer",
    "notebook",
    "git",
    "workflow",
    "cli",
]

# nbversion/config.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Runtime settings.

Resolution order (later wins):
  1. dataclass defaults
  2. `nbversion.yaml` (or `.nbversion.yaml`) in the project root
  3. NBVERSION_* environment variables

Example `nbversion.yaml`:

    notebooks_dir: experiments/notebooks
    remote: upstream
    script_extensions: [".py", ".R"]
    log_level: DEBUG
    log_file: nbversion.log
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = ("nbversion.yaml", ".nbversion.yaml")
ENV_PREFIX = "NBVERSION_"


@dataclass
class Settings:
    notebooks_dir: str = "notebooks"
    notebook_glob: str = "*.ipynb"
    remote: str = "origin"
    default_description: str = "Model improvements and updates"
    default_short_description: str = "updated"
    script_extensions: List[str] = field(default_factory=lambda: [".py"])
    log_level: str = "INFO"
    # optional diagnostics file, relative to the project root; empty disables it
    log_file: str = ""
    # relative to the git directory, so it is never picked up by `git add .`
    events_log: str = "nbversion/events.jsonl"

    def notebooks_path(self, root: Path) -> Path:
        return root / self.notebooks_dir

    def events_path(self, git_dir: Path) -> Path:
        return git_dir / self.events_log

    def log_path(self, root: Path) -> Optional[Path]:
        return root / self.log_file if self.log_file else None


_FIELDS = {f.name: f for f in dataclasses.fields(Settings)}


def _coerce(key: str, value: Any, source: str) -> Any:
    if key == "script_extensions":
        if isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"'{key}' must be a list of strings (from {source})")
        return [v if v.startswith(".") else f".{v}" for v in value]
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string (from {source})")
    if key == "log_level":
        value = value.upper()
    return value


def _apply(settings: Settings, raw: Mapping[str, Any], source: str) -> Settings:
    unknown = sorted(set(raw) - set(_FIELDS))
    if unknown:
        raise ConfigError(f"unknown setting(s): {', '.join(unknown)} (from {source})")
    updates = {k: _coerce(k, v, source) for k, v in raw.items()}
    return dataclasses.replace(settings, **updates)


def find_config_file(root: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        p = root / name
        if p.is_file():
            return p
    return None


def load_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path) from e
    if not isinstance(raw, dict):
        raise ConfigError("top level must be a mapping", path)
    return raw


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    environ = os.environ if environ is None else environ
    out: Dict[str, str] = {}
    for key in _FIELDS:
        env_key = ENV_PREFIX + key.upper()
        if env_key in environ:
            out[key] = environ[env_key]
    return out


def load_settings(root: Path, environ: Optional[Mapping[str, str]] = None) -> Settings:
    settings = Settings()
    path = find_config_file(root)
    if path is not None:
        settings = _apply(settings, load_yaml(path), str(path))
    overrides = env_overrides(environ)
    if overrides:
        settings = _apply(settings, overrides, "environment")
    return settings

# nbversion/conventions.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Notebook filename conventions.

Each convention is a descriptor of (pattern, extractor, formatter). The
descriptors live in `CONVENTIONS` in priority order: a filename is classified
by the FIRST convention whose pattern matches and is never tested against a
later one.

    rule  example                        compose target
    ----  -----------------------------  ------------------------
    1     Model(v3).ipynb                Model(v4).ipynb
    2     Model_v3.ipynb                 Model_v4.ipynb
    3     ModelV3.ipynb / Modelv3.ipynb  ModelV4.ipynb
    4     V3_baseline.ipynb              V4_<description>.ipynb
    5     v3_baseline.ipynb              v4_<description>.ipynb
    6     final_Model_v3_notes.ipynb     (default) V4_updated.ipynb
    7     Model.ipynb  (version 0)       (default) V1_updated.ipynb

Rule 6 only looks for the v<N> run after the literal "Model", so a name such
as `exp_v3_Model.ipynb` is not recognized by any rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

DEFAULT_EXT = ".ipynb"
DEFAULT_SHORT_DESCRIPTION = "updated"

# (match, new_version, short_description) -> filename
Formatter = Callable[["re.Match[str]", str, str], str]


@dataclass(frozen=True)
class Convention:
    """One recognized naming scheme."""

    rule: int
    name: str
    pattern: "re.Pattern[str]"
    formatter: Optional[Formatter] = None
    takes_description: bool = False

    def match(self, filename: str) -> "Optional[re.Match[str]]":
        return self.pattern.match(filename)

    def extract(self, filename: str) -> Optional[int]:
        """Return the version number carried by `filename`, or None if it does not match."""
        m = self.match(filename)
        if m is None:
            return None
        num = m.groupdict().get("num")
        return int(num) if num is not None else 0

    @property
    def composable(self) -> bool:
        return self.formatter is not None

    def format(self, filename: str, number: str, short_description: str = DEFAULT_SHORT_DESCRIPTION) -> str:
        """Compose the filename for version `number` in this convention, using `filename` as template."""
        m = self.match(filename)
        if m is None or self.formatter is None:
            raise ValueError(f"{filename!r} cannot be formatted with convention {self.name}")
        return self.formatter(m, number, short_description)


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------
_EXT = r"(?P<ext>\.[A-Za-z0-9]+)"

PAREN_RE = re.compile(r"^(?P<name>.+)\(v(?P<num>\d+)\)" + _EXT + r"$")
UNDERSCORE_RE = re.compile(r"^(?P<name>.+)_v(?P<num>\d+)" + _EXT + r"$")
SUFFIX_RE = re.compile(r"^(?P<name>.+?)[Vv](?P<num>\d+)" + _EXT + r"$")
UPPER_PREFIX_RE = re.compile(r"^V(?P<num>\d+)_(?P<desc>.*)" + _EXT + r"$")
LOWER_PREFIX_RE = re.compile(r"^v(?P<num>\d+)_(?P<desc>.*)" + _EXT + r"$")
# greedy prefix: the last v<digits> run after "Model" wins
MODEL_LOOSE_RE = re.compile(r"^.*Model.*v(?P<num>\d+).*" + _EXT + r"$")
MODEL_BARE_RE = re.compile(r"^(?P<name>[Mm][Oo][Dd][Ee][Ll][^\d]*?)(?P<ext>\.[A-Za-z]+)$")


def _fmt_paren(m: "re.Match[str]", n: str, _desc: str) -> str:
    return f"{m['name']}(v{n}){m['ext']}"


def _fmt_underscore(m: "re.Match[str]", n: str, _desc: str) -> str:
    return f"{m['name']}_v{n}{m['ext']}"


def _fmt_suffix(m: "re.Match[str]", n: str, _desc: str) -> str:
    return f"{m['name']}V{n}{m['ext']}"


def _fmt_upper_prefix(m: "re.Match[str]", n: str, desc: str) -> str:
    return f"V{n}_{desc}{m['ext']}"


def _fmt_lower_prefix(m: "re.Match[str]", n: str, desc: str) -> str:
    return f"v{n}_{desc}{m['ext']}"


PAREN = Convention(1, "paren", PAREN_RE, _fmt_paren)
UNDERSCORE = Convention(2, "underscore", UNDERSCORE_RE, _fmt_underscore)
SUFFIX = Convention(3, "suffix", SUFFIX_RE, _fmt_suffix)
UPPER_PREFIX = Convention(4, "upper_prefix", UPPER_PREFIX_RE, _fmt_upper_prefix, takes_description=True)
LOWER_PREFIX = Convention(5, "lower_prefix", LOWER_PREFIX_RE, _fmt_lower_prefix, takes_description=True)
MODEL_LOOSE = Convention(6, "model_loose", MODEL_LOOSE_RE)
MODEL_BARE = Convention(7, "model_bare", MODEL_BARE_RE)

CONVENTIONS: Tuple[Convention, ...] = (
    PAREN,
    UNDERSCORE,
    SUFFIX,
    UPPER_PREFIX,
    LOWER_PREFIX,
    MODEL_LOOSE,
    MODEL_BARE,
)


def classify(filename: str) -> Tuple[Optional[Convention], Optional[int]]:
    """Return (convention, version) for the first convention matching `filename`."""
    for conv in CONVENTIONS:
        version = conv.extract(filename)
        if version is not None:
            return conv, version
    return None, None


def default_name(number: str, ext: str = DEFAULT_EXT) -> str:
    """Fallback name used when no source convention can be reused."""
    return f"V{number}_{DEFAULT_SHORT_DESCRIPTION}{ext}"


def split_ext(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return DEFAULT_EXT
    return "." + filename.rsplit(".", 1)[1]

# nbversion/notebook.py
# nbversion: notebook-aware model versioning on top of git
# (c) 2025 nbversion authors. MIT License.
"""
Structured edits to notebook and script files.

The banner cell is spliced into the raw notebook text right after the opening
bracket of the top-level "cells" array. Nothing else in the file is rewritten,
so the original bytes survive except for the inserted entry. The spliced text
is parsed back and compared against the expected document before it is
written; if the two disagree the document is re-serialized instead.

Files are read and written as UTF-8 bytes. Inserted text uses the line
separator already found in the file (CRLF or LF).
"""

from __future__ import annotations

import datetime as dt
import json
import os
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import DocumentParseFailed

NBFORMAT = 4
NBFORMAT_MINOR = 5


# -----------------------------------------------------------------------------
# Low-level text helpers
# -----------------------------------------------------------------------------
def _skip_ws(text: str, i: int) -> int:
    n = len(text)
    while i < n and text[i] in " \t\r\n":
        i += 1
    return i


def _string_end(text: str, start: int) -> int:
    i = start + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            return i
        i += 1
    raise ValueError("unterminated string")


def _line_indent(text: str, pos: int) -> str:
    start = text.rfind("\n", 0, pos) + 1
    end = start
    while end < pos and text[end] in " \t":
        end += 1
    return text[start:end]


def find_cells_array(text: str) -> int:
    """Index of the "[" opening the top-level "cells" array, or -1."""
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            if depth == 1:
                j = _skip_ws(text, end + 1)
                if j < n and text[j] == ":" and json.loads(text[i : end + 1]) == "cells":
                    k = _skip_ws(text, j + 1)
                    return k if k < n and text[k] == "[" else -1
            i = end + 1
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        i += 1
    return -1


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _dump_cell(cell: Dict[str, Any], unit: int, indent: str, nl: str = "\n") -> str:
    return json.dumps(cell, indent=unit, ensure_ascii=False).replace("\n", nl + indent)


def _dump_doc(doc: Dict[str, Any], nl: str) -> str:
    return json.dumps(doc, indent=1, ensure_ascii=False).replace("\n", nl) + nl


def new_notebook_text(cell: Dict[str, Any]) -> str:
    """A minimal nbformat-4 notebook holding only `cell`, in Jupyter's on-disk style."""
    doc = {"cells": [cell], "metadata": {}, "nbformat": NBFORMAT, "nbformat_minor": NBFORMAT_MINOR}
    return json.dumps(doc, indent=1, sort_keys=True, ensure_ascii=False) + "\n"


def _parse(text: str) -> Dict[str, Any]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON ({e.msg} at line {e.lineno})") from e
    if not isinstance(doc, dict):
        raise ValueError("top-level JSON value is not an object")
    if not isinstance(doc.get("cells"), list):
        raise ValueError("no 'cells' list in document")
    return doc


def prepend_cell_text(text: str, cell: Dict[str, Any]) -> str:
    """
    Return `text` with `cell` inserted as the first entry of its "cells" array.

    Raises ValueError when `text` is not a notebook-shaped JSON document.
    Whitespace-only text becomes a fresh notebook.
    """
    if not text.strip():
        return new_notebook_text(cell)
    doc = _parse(text)
    nl = _newline(text)
    expected = dict(doc)
    expected["cells"] = [cell, *doc["cells"]]

    bracket = find_cells_array(text)
    if bracket < 0:
        return _dump_doc(expected, nl)

    first = _skip_ws(text, bracket + 1)
    ws = text[bracket + 1 : first]
    key_indent = _line_indent(text, bracket)
    empty = text[first] == "]"
    pretty = "\n" in text.strip()

    if "\n" in ws:
        elem_indent = ws.rsplit("\n", 1)[1]
    else:
        elem_indent = key_indent + " "
    unit = max(len(elem_indent) - len(key_indent), 1)

    head = text[: bracket + 1]
    rest = text[bracket + 1 :]
    if not pretty:
        cell_text = json.dumps(cell, ensure_ascii=False)
        spliced = head + cell_text + ("" if empty else ", ") + rest
    elif empty:
        spliced = head + nl + elem_indent + _dump_cell(cell, unit, elem_indent, nl) + nl + key_indent + rest
    else:
        spliced = head + ws + _dump_cell(cell, unit, elem_indent, nl) + "," + rest

    try:
        ok = json.loads(spliced) == expected
    except json.JSONDecodeError:
        ok = False
    if not ok:
        return _dump_doc(expected, nl)
    return spliced


def _read_text(path: Path) -> str:
    return path.read_bytes().decode("utf-8")


def _atomic_write(path: Path, text: str) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_bytes(text.encode("utf-8"))
    os.replace(tmp, path)


# -----------------------------------------------------------------------------
# File-level operations
# -----------------------------------------------------------------------------
def prepend_banner(path: Path, cell: Dict[str, Any]) -> None:
    """Insert `cell` at the top of notebook `path`; DocumentParseFailed leaves the file untouched."""
    try:
        text = _read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentParseFailed(path, str(e)) from e
    try:
        new_text = prepend_cell_text(text, cell)
    except ValueError as e:
        raise DocumentParseFailed(path, str(e)) from e
    _atomic_write(path, new_text)


def create_notebook(path: Path, cell: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(path, new_notebook_text(cell))


def copy_notebook(source: Path, target: Path) -> None:
    shutil.copy2(source, target)


def script_banner(label: str, description: str, created: Optional[dt.datetime] = None, nl: str = "\n") -> str:
    created = created or dt.datetime.now()
    return f"# Version: {label} - {description}{nl}# Created: {created.strftime('%Y-%m-%d %H:%M:%S')}{nl}{nl}"


def prepend_script_banner(
    path: Path,
    label: str,
    description: str,
    created: Optional[dt.datetime] = None,
) -> bool:
    """
    Prepend a version comment block to a script. Returns False if it already has one for `label`.

    Raises DocumentParseFailed (file untouched) when the script cannot be read as UTF-8.
    """
    try:
        text = _read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentParseFailed(path, str(e)) from e
    if re.search(rf"Version: {re.escape(label)}\b", text):
        return False
    _atomic_write(path, script_banner(label, description, created, _newline(text)) + text)
    return True

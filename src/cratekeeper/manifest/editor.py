"""Line-oriented manifest editing — member-list arrays and keyed section lines.

Two small state machines over the lines of a manifest:
  - array splice: insert or delete one string element of a ``key = [...]``
    array, single-line or multi-line.
  - section filter: insert or delete one keyed line inside a ``[section]``
    block (a ``[section.key]`` sub-table is removed as a whole).

Neither understands the full manifest grammar. Lines outside the targeted
construct are passed through byte for byte, including their line endings.
All transforms are pure (text in, text out); rewrite_file() applies one to a
file and atomically replaces it only when the text changed.

Key functions: read_array(), splice_array_insert(), splice_array_delete(),
    section_keys(), filter_section_insert(), filter_section_delete(),
    read_manifest(), rewrite_file().
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Callable
from pathlib import Path

from ..errors import FilesystemError

logger = logging.getLogger(__name__)

# "[section]" or "[[array.of.tables]]" header, optional trailing comment
_HEADER_RE = re.compile(r"^\s*\[\[?\s*([^\[\]]*?)\s*\]\]?\s*(#.*)?$")

# Basic ("...") or literal ('...') string element
_ELEMENT_RE = re.compile(r'"((?:[^"\\]|\\.)*)"|\'([^\']*)\'')

_DEFAULT_INDENT = "    "

# Array-splice states
_BEFORE = "before"
_IN_ARRAY = "in_array"

# Section-filter states
_OUTSIDE = "outside_section"
_INSIDE = "inside_section"
_DROPPING = "dropping_table"


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------


def _split_eol(line: str) -> tuple[str, str]:
    """Split a line into its body and its line terminator."""
    body = line.rstrip("\r\n")
    return body, line[len(body) :]


def _find_unquoted(text: str, char: str, start: int = 0) -> int:
    """Index of the first *char* outside string literals and comments, or -1."""
    quote = ""
    i = start
    while i < len(text):
        c = text[i]
        if quote:
            if c == "\\" and quote == '"':
                i += 2
                continue
            if c == quote:
                quote = ""
        elif c == char:
            return i
        elif c in "\"'":
            quote = c
        elif c == "#":
            return -1
        i += 1
    return -1


def _code(body: str) -> str:
    """Line body with any trailing comment removed."""
    idx = _find_unquoted(body, "#")
    return body if idx < 0 else body[:idx]


def _elements(segment: str) -> list[str]:
    values = []
    for m in _ELEMENT_RE.finditer(_code(segment)):
        values.append(m.group(1) if m.group(1) is not None else m.group(2))
    return values


def _quote(element: str) -> str:
    return '"' + element.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _header_name(body: str) -> str | None:
    m = _HEADER_RE.match(body)
    return m.group(1) if m else None


def line_key(line: str) -> str:
    """Return the key a manifest line declares, or "" for blanks and comments.

    The key is the first whitespace-delimited token, cut at the first ``=``
    and the first ``.``, so ``core = {...}``, ``core={...}`` and
    ``core.workspace = true`` all declare ``core``.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return ""
    token = stripped.split(None, 1)[0]
    return token.split("=", 1)[0].split(".", 1)[0]


# ---------------------------------------------------------------------------
# Array splice
# ---------------------------------------------------------------------------


def _locate_array(lines: list[str], key: str) -> tuple[int, int, int, int] | None:
    """Find the ``key = [...]`` array.

    Returns (start_line, open_col, end_line, close_col) or None when the
    array is absent or never closed.
    """
    start_re = re.compile(rf"^\s*{re.escape(key)}\s*=\s*\[")
    state = _BEFORE
    start = open_col = -1
    for i, line in enumerate(lines):
        body, _ = _split_eol(line)
        if state == _BEFORE:
            m = start_re.match(body)
            if m is None:
                continue
            start, open_col = i, m.end() - 1
            close = _find_unquoted(body, "]", m.end())
            if close >= 0:
                return start, open_col, i, close
            state = _IN_ARRAY
        else:
            if _header_name(body) is not None:
                break
            close = _find_unquoted(body, "]")
            if close >= 0:
                return start, open_col, i, close

    if state == _IN_ARRAY:
        logger.warning("Array '%s' opened on line %d is never closed", key, start + 1)
    return None


def _segment_bounds(
    body: str, i: int, span: tuple[int, int, int, int]
) -> tuple[int, int]:
    """Column range of *body* (line *i*) that lies inside the array brackets."""
    start, open_col, end, close = span
    lo = open_col + 1 if i == start else 0
    hi = close if i == end else len(_code(body))
    return lo, hi


def read_array(text: str, key: str) -> list[str]:
    """Return the string elements of the ``key = [...]`` array, in order."""
    lines = text.splitlines(keepends=True)
    span = _locate_array(lines, key)
    if span is None:
        return []
    values: list[str] = []
    for i in range(span[0], span[2] + 1):
        body, _ = _split_eol(lines[i])
        lo, hi = _segment_bounds(body, i, span)
        values.extend(_elements(body[lo:hi]))
    return values


def _insert_inline(inner: str, quoted: str) -> str:
    """Append *quoted* to the elements in *inner*, keeping trailing spacing."""
    head = inner.rstrip()
    tail = inner[len(head) :]
    if not head.strip():
        return head + quoted + tail
    if head.endswith(","):
        return f"{head} {quoted}{tail}"
    return f"{head}, {quoted}{tail}"


def _drop_inline(segment: str, element: str) -> str:
    """Remove *element* and one adjoining separator from *segment*."""
    while True:
        for m in _ELEMENT_RE.finditer(segment):
            value = m.group(1) if m.group(1) is not None else m.group(2)
            if value == element:
                break
        else:
            return segment
        before = segment[: m.start()].rstrip()
        if before.endswith(","):
            segment = before[:-1] + segment[m.end() :]
        else:
            after = segment[m.end() :]
            if after.lstrip().startswith(","):
                after = after.lstrip()[1:].lstrip()
            segment = segment[: m.start()] + after


def splice_array_insert(text: str, key: str, element: str) -> str:
    """Insert *element* into the ``key = [...]`` array.

    Single-line arrays get the element just before their closing bracket;
    multi-line arrays get a new line before the bracket-only closing line,
    or join the last element's line when it has no trailing comma.
    A missing array is appended at end of file with the element alone.
    No-op when an equal element is already present.
    """
    if element in read_array(text, key):
        return text

    quoted = _quote(element)
    lines = text.splitlines(keepends=True)
    span = _locate_array(lines, key)
    if span is None:
        prefix = text if not text or text.endswith("\n") else text + "\n"
        return f"{prefix}{key} = [{quoted}]\n"

    start, open_col, end, close = span
    body, eol = _split_eol(lines[end])
    if start == end:
        inner = body[open_col + 1 : close]
        lines[end] = (
            body[: open_col + 1] + _insert_inline(inner, quoted) + body[close:] + eol
        )
    elif body[:close].strip():
        # last element shares its line with the closing bracket
        lines[end] = _insert_inline(body[:close], quoted) + body[close:] + eol
    else:
        _insert_element_line(lines, span, quoted, eol or "\n")
    return "".join(lines)


def _insert_element_line(
    lines: list[str], span: tuple[int, int, int, int], quoted: str, eol: str
) -> None:
    start, open_col, end, _ = span
    prev = end - 1
    while prev > start and not _code(_split_eol(lines[prev])[0]).strip():
        prev -= 1

    body, prev_eol = _split_eol(lines[prev])
    code = _code(body).rstrip()
    if prev > start:
        indent = body[: len(body) - len(body.lstrip())]
        has_element = bool(code.strip())
    else:
        indent = _DEFAULT_INDENT
        has_element = bool(code[open_col + 1 :].strip())

    if has_element and not code.endswith(","):
        # no trailing-comma style: join the last element's line
        lines[prev] = f"{code}, {quoted}" + body[len(code) :] + prev_eol
        return

    lines.insert(end, f"{indent}{quoted},{eol}")


def splice_array_delete(text: str, key: str, element: str) -> str:
    """Delete *element* from the ``key = [...]`` array.

    Inside a multi-line array, a line holding only the element is dropped;
    otherwise the element and its separator are cut out of the line.
    Elements are compared as whole strings, never as prefixes. No-op when
    the array or the element is absent.
    """
    lines = text.splitlines(keepends=True)
    span = _locate_array(lines, key)
    if span is None:
        return text

    start, _, end, _ = span
    out: list[str] = lines[:start]
    for i in range(start, end + 1):
        body, eol = _split_eol(lines[i])
        lo, hi = _segment_bounds(body, i, span)
        found = _elements(body[lo:hi])
        if element not in found:
            out.append(lines[i])
        elif start < i < end and set(found) == {element}:
            continue
        else:
            out.append(body[:lo] + _drop_inline(body[lo:hi], element) + body[hi:] + eol)
    out.extend(lines[end + 1 :])
    return "".join(out)


# ---------------------------------------------------------------------------
# Section filter
# ---------------------------------------------------------------------------


def has_section(text: str, section: str) -> bool:
    """True if any line is the ``[section]`` header."""
    return any(_header_name(line) == section for line in text.splitlines())


def section_keys(text: str, section: str) -> list[str]:
    """Keys declared in ``[section]`` plus the names of ``[section.<key>]`` tables."""
    keys: list[str] = []
    prefix = section + "."
    state = _OUTSIDE
    for line in text.splitlines():
        name = _header_name(line)
        if name is not None:
            state = _INSIDE if name == section else _OUTSIDE
            if name.startswith(prefix):
                keys.append(name[len(prefix) :].split(".", 1)[0])
            continue
        if state == _INSIDE:
            key = line_key(line)
            if key:
                keys.append(key)
    return keys


def filter_section_insert(text: str, section: str, key: str, entry: str) -> str:
    """Append *entry* to ``[section]`` unless a line there already declares *key*.

    The entry goes after the section's last non-blank line. A missing
    section is appended at end of file, header and entry together.
    """
    if key in section_keys(text, section):
        return text

    lines = text.splitlines(keepends=True)
    state = _OUTSIDE
    insert_at: int | None = None
    for i, line in enumerate(lines):
        name = _header_name(_split_eol(line)[0])
        if name is not None:
            if state == _INSIDE:
                break
            if name == section:
                state = _INSIDE
                insert_at = i + 1
            continue
        if state == _INSIDE and line.strip():
            insert_at = i + 1

    if insert_at is None:
        prefix = text
        if prefix and not prefix.endswith("\n"):
            prefix += "\n"
        if prefix and not prefix.endswith("\n\n"):
            prefix += "\n"
        return f"{prefix}[{section}]\n{entry}\n"

    prev_body, prev_eol = _split_eol(lines[insert_at - 1])
    if not prev_eol:
        prev_eol = "\n"
        lines[insert_at - 1] = prev_body + prev_eol
    lines.insert(insert_at, entry + prev_eol)
    return "".join(lines)


def filter_section_delete(text: str, section: str, key: str) -> str:
    """Drop every line of ``[section]`` declaring *key*, and any ``[section.key]`` table.

    Keys are compared exactly: removing ``foo`` leaves ``foobar`` alone.
    """
    table = f"{section}.{key}"
    out: list[str] = []
    state = _OUTSIDE
    for line in text.splitlines(keepends=True):
        name = _header_name(_split_eol(line)[0])
        if name is not None:
            if name == table or name.startswith(table + "."):
                state = _DROPPING
                continue
            state = _INSIDE if name == section else _OUTSIDE
        elif state == _DROPPING:
            continue
        elif state == _INSIDE and line_key(line) == key:
            continue
        out.append(line)
    return "".join(out)


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_manifest(path: Path) -> str:
    """Read a manifest without newline translation."""
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise FilesystemError(f"Cannot read {path}: {e}") from e


def rewrite_file(path: Path, transform: Callable[[str], str]) -> bool:
    """Apply *transform* to the file at *path* and atomically replace it.

    The new content is written to a sibling temp file and moved over the
    original with os.replace(), so readers never observe a partial file.
    Nothing is written when the text is unchanged.

    Returns:
        True if the file content changed.

    Raises:
        FilesystemError: If the file cannot be read or replaced.
    """
    original = read_manifest(path)
    updated = transform(original)
    if updated == original:
        return False

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(updated)
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise FilesystemError(f"Cannot rewrite {path}: {e}") from e
    logger.debug("Rewrote %s", path)
    return True

"""Restricted YAML reader and writer for frontmatter and composable metadata.

Only the subset the template tree uses is understood: top-level
``key: value`` pairs, block and inline string lists, and one level of
nested maps. The reader never raises; lines it cannot interpret are
dropped. The writer emits keys in a caller-supplied order so the output
does not depend on mapping iteration.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

_INT_RE = re.compile(r"^[-+]?\d+$")
_FLOAT_RE = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+(?=[eE]))(?:[eE][-+]?\d+)?$")

# Characters that force a string to be double-quoted on output.
_SPECIAL_CHARS = frozenset(":#{}[]")
_INDICATOR_CHARS = frozenset("\"'|>&*!%@`")

# Characters str.splitlines breaks on; quoted and escaped so a value stays on
# one line.
_LINE_BREAKS = frozenset("\n\r\v\f\x1c\x1d\x1e\x85\u2028\u2029")
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}

FRONTMATTER_DELIMITER = "---"


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def _strip_inline_comment(text: str) -> str:
    """Drop a trailing ``# comment`` that sits outside quotes."""
    quote: str | None = None
    escaped = False
    for i, ch in enumerate(text):
        if escaped:
            escaped = False
        elif quote:
            if ch == "\\" and quote == '"':
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "#" and (i == 0 or text[i - 1] in " \t"):
            return text[:i]
    return text


def _unescape_double(inner: str) -> str:
    out: list[str] = []
    chars = iter(inner)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        if nxt == "n":
            out.append("\n")
        elif nxt == "r":
            out.append("\r")
        elif nxt == "t":
            out.append("\t")
        elif nxt == "u":
            digits = "".join(next(chars, "") for _ in range(4))
            try:
                out.append(chr(int(digits, 16)))
            except ValueError:
                out.append("u" + digits)
        else:
            out.append(nxt)
    return "".join(out)


def _unquote(text: str) -> str | None:
    """Return the content of a quoted scalar, or None if it is not quoted."""
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return _unescape_double(text[1:-1])
    if len(text) >= 2 and text[0] == text[-1] == "'":
        return text[1:-1].replace("''", "'")
    return None


def _split_inline_list(inner: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaped = False
    for ch in inner:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if quote:
            if ch == "\\" and quote == '"':
                escaped = True
            elif ch == quote:
                quote = None
            current.append(ch)
            continue
        if ch in "\"'":
            quote = ch
            current.append(ch)
        elif ch == ",":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def _parse_item(text: str) -> str:
    text = text.strip()
    unquoted = _unquote(text)
    return text if unquoted is None else unquoted


def parse_scalar(text: str, typed: bool = True) -> Any:
    """Interpret a single YAML scalar or inline list.

    Args:
        text: Raw value text, already stripped of the key and colon
        typed: Convert booleans, nulls and numbers; otherwise keep strings

    Returns:
        The parsed value
    """
    text = text.strip()
    if text.startswith("[") and text.endswith("]"):
        inner = text[1:-1].strip()
        if not inner:
            return []
        return [_parse_item(part) for part in _split_inline_list(inner) if part.strip()]

    unquoted = _unquote(text)
    if unquoted is not None:
        return unquoted
    if not typed:
        return text

    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("null", "~") or text == "":
        return None
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return text


def _read_block(
    lines: list[str],
    start: int,
    metadata: bool,
    typed: bool,
) -> tuple[list[str] | dict[str, Any] | None, int]:
    """Collect the indented list or map following a bare ``key:`` line."""
    items: list[str] = []
    mapping: dict[str, Any] = {}
    kind: str | None = None
    i = start
    while i < len(lines):
        line = lines[i]
        if _is_skippable(line):
            i += 1
            continue
        stripped = line.strip()
        is_item = stripped == "-" or stripped.startswith("- ")
        if not line[0].isspace() and not is_item:
            break
        if metadata:
            stripped = _strip_inline_comment(stripped).strip()
        if is_item:
            if kind == "map":
                break
            kind = "list"
            raw_item = stripped[1:].strip()
            if raw_item:
                items.append(_parse_item(raw_item))
        elif ":" in stripped:
            if kind == "list":
                break
            kind = "map"
            key, _, value = stripped.partition(":")
            if key.strip():
                mapping[_parse_item(key)] = parse_scalar(value, typed)
        i += 1

    if kind == "list":
        return items, i
    if kind == "map":
        return mapping, i
    return None, i


def parse_yaml(text: str, *, metadata: bool = False, typed: bool = True) -> dict[str, Any]:
    """Parse the restricted YAML subset into a dict.

    Args:
        text: YAML source
        metadata: Strip trailing ``#`` comments (metadata files only)
        typed: Convert scalars to bool/None/int/float where they look like one

    Returns:
        Parsed mapping; malformed lines are skipped
    """
    result: dict[str, Any] = {}
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]
        if _is_skippable(line) or line[0].isspace() or line.startswith("-"):
            i += 1
            continue

        key, sep, rest = line.partition(":")
        key = _parse_item(key)
        if not sep or not key:
            i += 1
            continue

        if metadata:
            rest = _strip_inline_comment(rest)
        if rest.strip():
            result[key] = parse_scalar(rest, typed)
            i += 1
            continue

        block, i = _read_block(lines, i + 1, metadata, typed)
        result[key] = block
    return result


def split_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a markdown document into its frontmatter mapping and body.

    Args:
        raw: Full file content

    Returns:
        Tuple of (frontmatter, body). Without a ``---`` envelope the
        frontmatter is empty and the body is the whole input.
    """
    stripped = raw.lstrip(" \t\r\n")
    lines = stripped.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER or not lines[0].endswith("\n"):
        return {}, raw

    for index in range(1, len(lines)):
        if lines[index].rstrip() == FRONTMATTER_DELIMITER:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1 :]).lstrip("\r\n")
            return parse_yaml(block), body
    return {}, raw


def _needs_quotes(value: str) -> bool:
    if value == "" or value != value.strip():
        return True
    if any(ch in _LINE_BREAKS for ch in value) or any(ch in _SPECIAL_CHARS for ch in value):
        return True
    if value[0] in _INDICATOR_CHARS or value == "-" or value.startswith("- "):
        return True
    # Strings that would come back as another type.
    return parse_scalar(value) != value


def _quote(value: str) -> str:
    out: list[str] = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch in _LINE_BREAKS:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def format_scalar(value: Any) -> str:
    """Render one scalar the way the serializer writes it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    text = str(value)
    return _quote(text) if _needs_quotes(text) else text


def _ordered_keys(data: Mapping[str, Any], key_order: Iterable[str] | None) -> list[str]:
    if key_order is None:
        return list(data)
    ordered = [key for key in key_order if key in data]
    ordered.extend(key for key in data if key not in ordered)
    return ordered


def serialize_frontmatter(
    data: Mapping[str, Any],
    key_order: Iterable[str] | None = None,
) -> str:
    """Serialize a mapping to YAML lines in a fixed key order.

    None values, empty lists and empty maps are omitted.

    Args:
        data: Mapping of scalars, string lists and one-level maps
        key_order: Keys to emit first, in this order; the rest follow

    Returns:
        YAML text with one trailing newline, or "" when nothing is emitted
    """
    lines: list[str] = []
    for key in _ordered_keys(data, key_order):
        value = data[key]
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {format_scalar(item)}" for item in value)
        elif isinstance(value, Mapping):
            entries = [(k, v) for k, v in value.items() if v is not None]
            if not entries:
                continue
            lines.append(f"{key}:")
            lines.extend(f"  {k}: {format_scalar(v)}" for k, v in entries)
        else:
            lines.append(f"{key}: {format_scalar(value)}")
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def with_frontmatter(
    data: Mapping[str, Any],
    body: str,
    key_order: Iterable[str] | None = None,
) -> str:
    """Wrap a body in a ``---`` frontmatter envelope.

    The body is returned unchanged when the frontmatter is empty.
    """
    block = serialize_frontmatter(data, key_order)
    if not block:
        return body
    return f"{FRONTMATTER_DELIMITER}\n{block}{FRONTMATTER_DELIMITER}\n\n{body}"

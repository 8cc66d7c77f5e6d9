"""``{name}`` placeholder substitution."""

from __future__ import annotations

import re
from collections.abc import Mapping

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def substitute(text: str, variables: Mapping[str, str]) -> str:
    """Replace every ``{name}`` whose name is in variables.

    The text is scanned once: unknown placeholders are left as they are,
    and substituted values are never scanned again.

    Args:
        text: Text containing placeholders
        variables: Variable name to replacement value

    Returns:
        Text with known placeholders replaced
    """
    if not variables:
        return text

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, text)


def merge_variables(
    base: Mapping[str, str],
    extra: Mapping[str, str] | None,
) -> dict[str, str]:
    """Overlay extra variables on base ones; extra values win."""
    merged = dict(base)
    if extra:
        merged.update(extra)
    return merged


def parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a variable map.

    Raises:
        ValueError: If an assignment has no ``=`` or an empty key
    """
    variables: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"Expected KEY=VALUE, got: {assignment!r}"
            raise ValueError(msg)
        variables[key] = value
    return variables

"""Composable artifacts: directories assembled per target from ordered sections.

A composable directory holds:

- ``_order.yaml``: the section files to emit, in order. An entry may
  contain ``{tool}``, which is replaced by the target name.
- ``_variables.yaml`` (optional): per-target ``{name}`` substitutions.
- the section files themselves, typically a shared ``sections/`` folder
  plus one folder per target.

Variant sections (entries containing ``{tool}``) are optional per target.
A missing shared section is a broken template and fails the composition.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Mapping

from .exceptions import CompositionError
from .frontmatter import parse_yaml
from .models import ComposableArtifact
from .naming import is_safe_relative_path
from .source import TemplateSource
from .variables import merge_variables, substitute

logger = logging.getLogger(__name__)

ORDER_FILE = "_order.yaml"
VARIABLES_FILE = "_variables.yaml"
TOOL_TOKEN = "{tool}"
SECTION_SEPARATOR = "\n\n"


def parse_order(text: str) -> list[str]:
    """Read the ``sections`` list of an ``_order.yaml`` document.

    Accepts block or inline lists. Comments, blank lines, empty entries
    and entries that are absolute or climb out of the directory are
    dropped.
    """
    data = parse_yaml(text, metadata=True, typed=False)
    raw = data.get("sections")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        logger.debug("No sections list in %s", ORDER_FILE)
        return []

    sections: list[str] = []
    for entry in raw:
        if not isinstance(entry, str):
            continue
        entry = entry.strip()
        probe = entry.replace(TOOL_TOKEN, "tool")
        if not entry or not is_safe_relative_path(probe):
            logger.debug("Dropping malformed section entry %r", entry)
            continue
        sections.append(entry)
    return sections


def parse_variables(text: str) -> dict[str, dict[str, str]]:
    """Read an ``_variables.yaml`` document into target -> name -> value.

    Values are kept as the strings written in the file, with surrounding
    quotes removed. Targets without a nested map are ignored.
    """
    data = parse_yaml(text, metadata=True, typed=False)
    variables: dict[str, dict[str, str]] = {}
    for target, values in data.items():
        if not isinstance(values, dict):
            continue
        variables[target] = {
            str(name): "" if value is None else str(value)
            for name, value in values.items()
            if not isinstance(value, list)
        }
    return variables


def is_composable(source: TemplateSource, directory: str) -> bool:
    """Return True if directory contains an ``_order.yaml``."""
    return source.exists(posixpath.join(directory, ORDER_FILE))


def read_composable(source: TemplateSource, directory: str) -> ComposableArtifact | None:
    """Load the metadata of a composable directory.

    Returns:
        The artifact, or None when the directory has no ``_order.yaml``

    Raises:
        TemplateSourceError: If a metadata file exists but cannot be read
    """
    order_text = source.read_optional_text(posixpath.join(directory, ORDER_FILE))
    if order_text is None:
        return None
    variables_text = source.read_optional_text(posixpath.join(directory, VARIABLES_FILE))
    return ComposableArtifact(
        path=directory,
        sections=parse_order(order_text),
        variables=parse_variables(variables_text) if variables_text else {},
    )


def compose(
    source: TemplateSource,
    artifact: ComposableArtifact | str,
    target: str,
    extra_variables: Mapping[str, str] | None = None,
) -> str:
    """Assemble a composable artifact's body for one target.

    Each section is resolved (``{tool}`` replaced by the target), read,
    substituted and stripped of trailing newlines. Non-empty sections are
    joined with a blank line and the result ends with one newline.

    Args:
        source: Template source
        artifact: Loaded artifact, or its directory path
        target: Target name
        extra_variables: Variables that override the per-target ones

    Returns:
        Composed body text

    Raises:
        CompositionError: If the directory is not composable or a shared
            section is missing
        TemplateSourceError: If a section file cannot be read
    """
    if isinstance(artifact, str):
        loaded = read_composable(source, artifact)
        if loaded is None:
            msg = f"Not a composable directory (no {ORDER_FILE}): {artifact}"
            raise CompositionError(msg, details={"path": artifact})
        artifact = loaded

    variables = merge_variables(artifact.variables_for(target), extra_variables)

    sections: list[str] = []
    for entry in artifact.sections:
        resolved = posixpath.join(artifact.path, entry.replace(TOOL_TOKEN, target))
        content = source.read_optional_text(resolved)
        if content is None:
            if TOOL_TOKEN in entry:
                logger.debug("No %s variant for %s, skipping", target, resolved)
                continue
            msg = f"Missing section '{entry}' in composable artifact {artifact.path}"
            raise CompositionError(
                msg,
                details={"path": artifact.path, "section": entry, "target": target},
            )
        section = substitute(content, variables).rstrip("\r\n")
        if section:
            sections.append(section)

    return SECTION_SEPARATOR.join(sections) + "\n"

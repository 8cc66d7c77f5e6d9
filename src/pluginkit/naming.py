"""Naming rules shared by every target: the prefix glyph and entry filters."""

from __future__ import annotations

import posixpath

# U+1F9E0, prepended to every emitted artifact name.
GLYPH = "\U0001f9e0"
GLYPH_PREFIX = f"{GLYPH}-"

IGNORED_NAMES = frozenset({".gitkeep", ".DS_Store"})
IGNORED_DIRECTORIES = frozenset({"node_modules", ".git", "__pycache__"})


def brain_prefix(name: str) -> str:
    """Prefix a name with the glyph unless it already carries it.

    Args:
        name: Artifact name or filename

    Returns:
        The name with exactly one leading ``<glyph>-``
    """
    if name.startswith(GLYPH_PREFIX):
        return name
    return GLYPH_PREFIX + name


def strip_prefix(name: str) -> str:
    """Remove a leading glyph prefix, if any."""
    if name.startswith(GLYPH_PREFIX):
        return name[len(GLYPH_PREFIX) :]
    return name


def is_hidden(name: str) -> bool:
    """Return True for dotfiles and the OS/VCS droppings the reader skips."""
    return name in IGNORED_NAMES or name.startswith(".")


def is_safe_relative_path(path: str) -> bool:
    """Check that a path is relative, forward-slashed and stays inside its root."""
    if not path or "\\" in path:
        return False
    if path.startswith("/") or posixpath.isabs(path):
        return False
    # Drive letters are absolute on Windows even with forward slashes.
    if len(path) > 1 and path[1] == ":":
        return False
    return ".." not in path.split("/")

"""Canonical artifact reader and template-tree walkers."""

from __future__ import annotations

import logging
import posixpath

from .exceptions import TemplateNotFoundError
from .frontmatter import split_frontmatter
from .models import CanonicalArtifact
from .naming import IGNORED_DIRECTORIES, is_hidden
from .source import SourceEntry, TemplateSource

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


def _entries(source: TemplateSource, directory: str) -> list[SourceEntry]:
    try:
        return source.list_dir(directory)
    except TemplateNotFoundError:
        logger.debug("Directory %s not present, skipping", directory or ".")
        return []


def list_markdown_files(source: TemplateSource, directory: str) -> list[str]:
    """Return markdown filenames directly inside a directory, sorted.

    Directories, dotfiles, ``.gitkeep`` and ``.DS_Store`` are skipped.
    """
    return [
        entry.name
        for entry in _entries(source, directory)
        if not entry.is_dir and not is_hidden(entry.name) and entry.name.endswith(MARKDOWN_SUFFIX)
    ]


def list_plain_files(source: TemplateSource, directory: str) -> list[str]:
    """Return every non-hidden file directly inside a directory, sorted."""
    return [
        entry.name
        for entry in _entries(source, directory)
        if not entry.is_dir and not is_hidden(entry.name)
    ]


def list_subdirectories(source: TemplateSource, directory: str) -> list[str]:
    """Return non-hidden subdirectory names, sorted."""
    return [
        entry.name
        for entry in _entries(source, directory)
        if entry.is_dir and not is_hidden(entry.name) and entry.name not in IGNORED_DIRECTORIES
    ]


def collect_tree(source: TemplateSource, directory: str) -> list[str]:
    """Return all files below a directory, relative to it, skipping hidden entries.

    Hidden files and directories, ``node_modules`` and ``.git`` are not
    descended into. Order follows sorted directory listings.
    """
    files: list[str] = []
    for entry in _entries(source, directory):
        if is_hidden(entry.name):
            continue
        child = posixpath.join(directory, entry.name)
        if entry.is_dir:
            if entry.name in IGNORED_DIRECTORIES:
                continue
            files.extend(f"{entry.name}/{sub}" for sub in collect_tree(source, child))
        else:
            files.append(entry.name)
    return files


def read_canonical_artifact(
    source: TemplateSource,
    category: str,
    filename: str,
) -> CanonicalArtifact:
    """Read one markdown artifact and split its frontmatter.

    Raises:
        TemplateSourceError: If the file cannot be read
    """
    raw = source.read_text(posixpath.join(category, filename))
    frontmatter, body = split_frontmatter(raw)
    name = filename[: -len(MARKDOWN_SUFFIX)] if filename.endswith(MARKDOWN_SUFFIX) else filename
    return CanonicalArtifact(
        name=name,
        frontmatter=frontmatter,
        body=body,
        category=category,
        filename=filename,
    )


def read_canonical_artifacts(source: TemplateSource, category: str) -> list[CanonicalArtifact]:
    """Read every single-file artifact in a category directory.

    Args:
        source: Template source
        category: Category directory, e.g. ``agents`` or ``protocols``

    Returns:
        Artifacts sorted by filename; empty when the directory is missing

    Raises:
        TemplateSourceError: If a listed file cannot be read
    """
    artifacts = [
        read_canonical_artifact(source, category, filename)
        for filename in list_markdown_files(source, category)
    ]
    logger.debug("Read %d artifacts from %s", len(artifacts), category)
    return artifacts

"""Template sources: where the canonical tree is read from.

The compiler only needs a handful of read operations on the template
tree. ``FilesystemSource`` serves them from ``<project>/templates`` during
development; ``EmbeddedSource`` serves them from an in-memory snapshot,
such as package data bundled with a release.
"""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import TemplateNotFoundError, TemplateSourceError
from .naming import is_safe_relative_path

if TYPE_CHECKING:
    from collections.abc import Mapping
    from importlib.resources.abc import Traversable

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = "templates"


@dataclass(frozen=True)
class SourceEntry:
    """One directory entry in a template source."""

    name: str
    is_dir: bool


def normalize_path(path: str) -> str:
    """Normalize a template-relative path to forward-slash form.

    Raises:
        TemplateSourceError: If the path is absolute or escapes the root
    """
    cleaned = path.replace("\\", "/").strip()
    if cleaned in ("", ".", "./"):
        return ""
    normalized = posixpath.normpath(cleaned)
    if normalized == ".":
        return ""
    if not is_safe_relative_path(normalized):
        msg = f"Template path must be relative and inside the template root: {path}"
        raise TemplateSourceError(msg, details={"path": path})
    return normalized


class TemplateSource(ABC):
    """Read-only view of a template tree."""

    @property
    @abstractmethod
    def project_root(self) -> Path:
        """Project root used to absolutize ``./`` paths in generated config."""

    @property
    @abstractmethod
    def is_embedded(self) -> bool:
        """Whether templates come from a bundled snapshot rather than disk."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read a file.

        Args:
            path: Path relative to the template root

        Returns:
            Raw file content

        Raises:
            TemplateNotFoundError: If the file does not exist
            TemplateSourceError: If the file cannot be read
        """

    @abstractmethod
    def list_dir(self, path: str) -> list[SourceEntry]:
        """List a directory, sorted ascending by name.

        Raises:
            TemplateNotFoundError: If the directory does not exist
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Return True if path is a directory."""

    def read_text(self, path: str) -> str:
        """Read a file as UTF-8 text."""
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Template file is not valid UTF-8: {path}"
            raise TemplateSourceError(msg, details={"path": path}) from e

    def read_optional_text(self, path: str) -> str | None:
        """Read a file as text, or return None when it does not exist."""
        try:
            return self.read_text(path)
        except TemplateNotFoundError:
            return None

    def walk(self, path: str) -> list[str]:
        """Return every file below a directory, relative to that directory.

        Entries are visited in sorted order, so the result is sorted by
        path segment. A missing directory yields an empty list.
        """
        try:
            entries = self.list_dir(path)
        except TemplateNotFoundError:
            return []
        files: list[str] = []
        for entry in entries:
            child = posixpath.join(path, entry.name) if path else entry.name
            if entry.is_dir:
                files.extend(f"{entry.name}/{sub}" for sub in self.walk(child))
            else:
                files.append(entry.name)
        return files


class FilesystemSource(TemplateSource):
    """Template source backed by ``<project_root>/<templates_dir>`` on disk."""

    def __init__(
        self,
        project_root: Path,
        templates_dir: str = DEFAULT_TEMPLATES_DIR,
    ) -> None:
        """Initialize the source.

        Args:
            project_root: Repository root containing the template directory
            templates_dir: Template directory name, relative to the root
        """
        self._project_root = Path(project_root).resolve()
        self.root = self._project_root / templates_dir

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def is_embedded(self) -> bool:
        return False

    def _resolve(self, path: str) -> Path:
        normalized = normalize_path(path)
        return self.root / normalized if normalized else self.root

    def read_bytes(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            msg = f"Template file not found: {path}"
            raise TemplateNotFoundError(msg, details={"path": path}) from e
        except OSError as e:
            msg = f"Failed to read template file {path}: {e}"
            raise TemplateSourceError(msg, details={"path": path}) from e

    def list_dir(self, path: str) -> list[SourceEntry]:
        target = self._resolve(path)
        if not target.is_dir():
            msg = f"Template directory not found: {path}"
            raise TemplateNotFoundError(msg, details={"path": path})
        try:
            children = sorted(target.iterdir(), key=lambda p: p.name)
        except OSError as e:
            msg = f"Failed to list template directory {path}: {e}"
            raise TemplateSourceError(msg, details={"path": path}) from e
        return [SourceEntry(name=child.name, is_dir=child.is_dir()) for child in children]

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def __repr__(self) -> str:
        return f"FilesystemSource({str(self.root)!r})"


class EmbeddedSource(TemplateSource):
    """Template source backed by an in-memory snapshot of the tree."""

    def __init__(
        self,
        files: Mapping[str, bytes | str],
        project_root: Path | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            files: Mapping of template-relative path to content
            project_root: Root used for ``./`` path resolution (default: cwd)
        """
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {""}
        for raw_path, content in files.items():
            path = normalize_path(raw_path)
            if not path:
                continue
            self._files[path] = content.encode("utf-8") if isinstance(content, str) else content
            parent = posixpath.dirname(path)
            while parent:
                self._dirs.add(parent)
                parent = posixpath.dirname(parent)
        self._project_root = Path(project_root) if project_root else Path.cwd()

    @classmethod
    def from_traversable(
        cls,
        root: Traversable,
        project_root: Path | None = None,
    ) -> EmbeddedSource:
        """Snapshot a resource tree (package data or a directory) into memory."""
        files: dict[str, bytes] = {}

        def _collect(node: Traversable, prefix: str) -> None:
            for child in node.iterdir():
                rel = f"{prefix}{child.name}"
                if child.is_dir():
                    _collect(child, rel + "/")
                elif child.is_file():
                    files[rel] = child.read_bytes()

        if root.is_dir():
            _collect(root, "")
        logger.debug("Loaded %d embedded template files", len(files))
        return cls(files, project_root=project_root)

    @classmethod
    def from_package(
        cls,
        package: str,
        subdir: str = DEFAULT_TEMPLATES_DIR,
        project_root: Path | None = None,
    ) -> EmbeddedSource:
        """Snapshot templates bundled as package data."""
        return cls.from_traversable(resources.files(package).joinpath(subdir), project_root)

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def is_embedded(self) -> bool:
        return True

    def read_bytes(self, path: str) -> bytes:
        normalized = normalize_path(path)
        if normalized not in self._files:
            msg = f"Embedded template not found: {path}"
            raise TemplateNotFoundError(msg, details={"path": path})
        return self._files[normalized]

    def list_dir(self, path: str) -> list[SourceEntry]:
        normalized = normalize_path(path)
        if normalized not in self._dirs:
            msg = f"Embedded template directory not found: {path}"
            raise TemplateNotFoundError(msg, details={"path": path})
        prefix = f"{normalized}/" if normalized else ""
        names: dict[str, bool] = {}
        for candidate in (*self._files, *self._dirs):
            if not candidate or not candidate.startswith(prefix):
                continue
            rest = candidate[len(prefix) :]
            if not rest:
                continue
            head, sep, _ = rest.partition("/")
            names[head] = names.get(head, False) or bool(sep) or candidate in self._dirs
        return [SourceEntry(name=name, is_dir=names[name]) for name in sorted(names)]

    def exists(self, path: str) -> bool:
        normalized = normalize_path(path)
        return normalized in self._files or normalized in self._dirs

    def is_dir(self, path: str) -> bool:
        return normalize_path(path) in self._dirs

    def __len__(self) -> int:
        return len(self._files)

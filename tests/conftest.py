"""Shared fixtures for building template trees on disk."""

from __future__ import annotations

import json
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from pluginkit.config import parse_target_config
from pluginkit.models import TargetConfig
from pluginkit.source import FilesystemSource


def write_files(root: Path, files: dict[str, str]) -> None:
    """Write a mapping of relative path to content under root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def project_root() -> Iterator[Path]:
    """Create an empty temporary project root."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir).resolve()


@pytest.fixture
def make_source(project_root: Path) -> Callable[[dict[str, str]], FilesystemSource]:
    """Return a factory writing files under <project>/templates."""

    def _make(files: dict[str, str]) -> FilesystemSource:
        write_files(project_root / "templates", files)
        (project_root / "templates").mkdir(parents=True, exist_ok=True)
        return FilesystemSource(project_root)

    return _make


def make_config(data: dict[str, Any]) -> TargetConfig:
    """Build a validated TargetConfig from a dict."""
    return parse_target_config(json.dumps(data))


@pytest.fixture
def config_factory() -> Callable[[dict[str, Any]], TargetConfig]:
    """Return the TargetConfig factory."""
    return make_config

"""Writes generated files to disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import WriteError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .compiler import CompileResult
    from .models import GeneratedFile

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Materializes generated files under an output directory."""

    def __init__(self, output_dir: Path) -> None:
        """Initialize writer with the target root.

        Args:
            output_dir: Directory the relative paths are written under
        """
        self.output_dir = Path(output_dir)

    def write(self, files: Iterable[GeneratedFile]) -> list[Path]:
        """Write every file, creating parent directories as needed.

        Args:
            files: Generated files

        Returns:
            Paths written, in input order

        Raises:
            WriteError: If a file cannot be written
        """
        written: list[Path] = []
        for generated in files:
            target_path = self.output_dir / generated.relative_path
            try:
                target_path.parent.mkdir(parents=True, exist_ok=True)
                target_path.write_text(generated.content, encoding="utf-8")
            except OSError as e:
                msg = f"Failed to write {target_path}: {e}"
                raise WriteError(msg, details={"path": str(target_path)}) from e
            written.append(target_path)
        logger.debug("Wrote %d files to %s", len(written), self.output_dir)
        return written


def write_result(result: CompileResult, output_root: Path) -> dict[str, list[Path]]:
    """Write each target's files under ``<output_root>/<target>/``."""
    return {
        target: ArtifactWriter(Path(output_root) / target).write(files)
        for target, files in result.files.items()
    }

"""Target adapters, keyed by target name."""

from .base import TargetAdapter
from .claude_code import ClaudeCodeAdapter
from .cursor import CursorAdapter

ADAPTERS: dict[str, type[TargetAdapter]] = {
    ClaudeCodeAdapter.name: ClaudeCodeAdapter,
    CursorAdapter.name: CursorAdapter,
}

__all__ = [
    "ADAPTERS",
    "ClaudeCodeAdapter",
    "CursorAdapter",
    "TargetAdapter",
]

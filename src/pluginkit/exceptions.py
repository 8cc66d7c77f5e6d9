"""Custom exceptions for PluginKit."""

from typing import Any


class PluginKitError(Exception):
    """Base exception for all PluginKit errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class ConfigError(PluginKitError):
    """Raised when the target configuration cannot be loaded or is invalid."""


class TemplateSourceError(PluginKitError):
    """Raised when the template tree cannot be read."""


class TemplateNotFoundError(TemplateSourceError):
    """Raised when a requested template path does not exist."""


class CompositionError(PluginKitError):
    """Raised when a composable artifact cannot be assembled."""


class CompilationError(PluginKitError):
    """Raised when plugin compilation fails."""


class WriteError(PluginKitError):
    """Raised when generated files cannot be written."""

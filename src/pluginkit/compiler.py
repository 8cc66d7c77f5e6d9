"""Plugin compiler: runs every target adapter over one template tree."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .adapters import ADAPTERS, TargetAdapter
from .adapters.base import AGENTS_DIR
from .compose import is_composable
from .exceptions import CompilationError
from .models import AgentTargetStatus, GeneratedFile, TargetConfig
from .reader import list_markdown_files, list_subdirectories
from .source import TemplateSource

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Generated files for each compiled target, in target order."""

    files: dict[str, list[GeneratedFile]] = field(default_factory=dict)

    @property
    def targets(self) -> list[str]:
        """Names of the compiled targets."""
        return list(self.files)

    def for_target(self, target: str) -> list[GeneratedFile]:
        """Return the files of one target.

        Raises:
            KeyError: If the target was not compiled
        """
        return self.files[target]

    def all_files(self) -> list[tuple[str, GeneratedFile]]:
        """Return (target, file) pairs across every target."""
        return [(target, f) for target, files in self.files.items() for f in files]

    def summary(self) -> dict[str, int]:
        """File count per target."""
        return {target: len(files) for target, files in self.files.items()}


@dataclass(frozen=True)
class AgentReportRow:
    """Configuration state of one agent across targets."""

    name: str
    composable: bool
    statuses: dict[str, AgentTargetStatus]


class PluginCompiler:
    """Compiles a template tree into one plugin tree per target.

    The compiler is a pure function of its inputs: nothing is written and
    repeated calls return equal results.
    """

    def __init__(
        self,
        source: TemplateSource,
        config: TargetConfig,
        variables: Mapping[str, str] | None = None,
        adapters: Mapping[str, type[TargetAdapter]] | None = None,
    ) -> None:
        """Initialize compiler.

        Args:
            source: Template tree
            config: Target configuration
            variables: Extra ``{name}`` variables for every composition
            adapters: Target name to adapter class (default: all built-in)
        """
        self.source = source
        self.config = config
        self.variables = dict(variables or {})
        self.adapters = dict(ADAPTERS if adapters is None else adapters)

    def adapter(self, target: str) -> TargetAdapter:
        """Instantiate the adapter for a target.

        Raises:
            CompilationError: If no adapter is registered for the target
        """
        adapter_cls = self.adapters.get(target)
        if adapter_cls is None:
            known = ", ".join(self.adapters)
            msg = f"Unknown target '{target}' (known targets: {known})"
            raise CompilationError(msg, details={"target": target})
        return adapter_cls(self.source, self.config, self.variables)

    def compile_target(self, target: str) -> list[GeneratedFile]:
        """Compile a single target."""
        return self.adapter(target).compile()

    def compile(self, targets: Iterable[str] | None = None) -> CompileResult:
        """Compile the requested targets.

        Args:
            targets: Target names; every registered target when omitted

        Returns:
            Generated files per target

        Raises:
            CompilationError: If a target is unknown
            CompositionError: If a composable artifact is missing a section
            TemplateSourceError: If a template file cannot be read
        """
        names = list(self.adapters) if targets is None else list(dict.fromkeys(targets))
        adapters = [self.adapter(name) for name in names]

        result = CompileResult()
        for adapter in adapters:
            result.files[adapter.name] = adapter.compile()
        logger.info(
            "Compiled %s",
            ", ".join(f"{name}: {count} files" for name, count in result.summary().items()),
        )
        return result

    def agent_report(self) -> list[AgentReportRow]:
        """Describe how every canonical agent is configured per target.

        Unlike compilation, this keeps explicit-null (disabled) apart from
        missing (unconfigured) entries.
        """
        names: dict[str, bool] = {}
        for directory in list_subdirectories(self.source, AGENTS_DIR):
            if is_composable(self.source, posixpath.join(AGENTS_DIR, directory)):
                names[directory] = True
        for filename in list_markdown_files(self.source, AGENTS_DIR):
            names.setdefault(filename[: -len(".md")], False)

        return [
            AgentReportRow(
                name=name,
                composable=names[name],
                statuses={
                    target: self.config.agent_status(name, target) for target in self.adapters
                },
            )
            for name in sorted(names)
        ]

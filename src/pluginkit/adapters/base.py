"""Target adapter base class and the transforms both targets share.

Adapters turn the canonical template tree into the files one host
editor expects. Walking the tree, composing sections and copying skill
trees are identical for every target and live here. Frontmatter shape,
hooks and MCP emission stay in the subclasses.
"""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..compose import compose, is_composable, read_composable
from ..merge import load_json_object, resolve_mcp_paths
from ..models import AgentPlatformSettings, GeneratedFile, TargetConfig
from ..naming import brain_prefix
from ..reader import (
    collect_tree,
    list_plain_files,
    list_subdirectories,
    read_canonical_artifacts,
)
from ..source import DEFAULT_TEMPLATES_DIR, TemplateSource, normalize_path

logger = logging.getLogger(__name__)

AGENTS_DIR = "agents"
SKILLS_DIR = "skills"
COMMANDS_DIR = "commands"
PROTOCOLS_DIR = "protocols"
RULES_DIR = "rules"
DEFAULT_SCRIPTS_DIR = "hooks/scripts"
MCP_CANDIDATES = ("configs/mcp.json", "mcp.json")


@dataclass(frozen=True)
class AgentBody:
    """An agent enabled for one target, with its body resolved."""

    name: str
    settings: AgentPlatformSettings
    body: str
    composed: bool


def template_relative(path: str) -> str:
    """Turn a configured template path into one relative to the template root.

    Both ``hooks/x.json`` and ``templates/hooks/x.json`` are accepted.
    """
    normalized = normalize_path(path)
    prefix = f"{DEFAULT_TEMPLATES_DIR}/"
    if normalized.startswith(prefix):
        return normalized[len(prefix) :]
    return normalized


def present(value: Any) -> bool:
    """Return True for a setting worth emitting (not None, "" or [])."""
    return value is not None and value != "" and value != []


class TargetAdapter(ABC):
    """Compiles the template tree for one target."""

    name: str = ""

    def __init__(
        self,
        source: TemplateSource,
        config: TargetConfig,
        variables: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            source: Template tree to read from
            config: Target configuration
            variables: Extra variables applied to every composition
        """
        self.source = source
        self.config = config
        self.variables = dict(variables or {})

    @abstractmethod
    def compile(self) -> list[GeneratedFile]:
        """Produce every file for this target, in a deterministic order."""

    def compose(self, directory: str) -> str:
        """Compose a directory's body for this target."""
        return compose(self.source, directory, self.name, self.variables)

    def enabled_agents(self) -> list[AgentBody]:
        """Return agents enabled for this target.

        Composable directories come first, then single-file agents, each
        group sorted by name. A composable directory hides a single-file
        agent of the same name. Bodies are only composed for agents the
        configuration enables.
        """
        agents: list[AgentBody] = []
        composed_names: set[str] = set()

        for directory in list_subdirectories(self.source, AGENTS_DIR):
            path = posixpath.join(AGENTS_DIR, directory)
            if not is_composable(self.source, path):
                continue
            composed_names.add(directory)
            settings = self.config.agent_settings(directory, self.name)
            if settings is None:
                logger.debug("Agent %s not enabled for %s", directory, self.name)
                continue
            agents.append(AgentBody(directory, settings, self.compose(path), composed=True))

        for artifact in read_canonical_artifacts(self.source, AGENTS_DIR):
            if artifact.name in composed_names:
                logger.debug("Agent %s is composable, skipping %s", artifact.name, artifact.filename)
                continue
            settings = self.config.agent_settings(artifact.name, self.name)
            if settings is None:
                logger.debug("Agent %s not enabled for %s", artifact.name, self.name)
                continue
            agents.append(AgentBody(artifact.name, settings, artifact.body, composed=False))

        for agent in agents:
            logger.debug(
                "Agent %s enabled for %s (%s)",
                agent.name,
                self.name,
                "composed" if agent.composed else "single file",
            )
        return agents

    def skills(self) -> list[GeneratedFile]:
        """Copy every skill tree under a prefixed directory name."""
        files: list[GeneratedFile] = []
        for skill in list_subdirectories(self.source, SKILLS_DIR):
            skill_dir = posixpath.join(SKILLS_DIR, skill)
            for relative in collect_tree(self.source, skill_dir):
                files.append(
                    GeneratedFile(
                        relative_path=f"{SKILLS_DIR}/{brain_prefix(skill)}/{relative}",
                        content=self.source.read_text(posixpath.join(skill_dir, relative)),
                    ),
                )
        return files

    def commands(self) -> list[GeneratedFile]:
        """Emit commands, composing directory commands without frontmatter."""
        files: list[GeneratedFile] = []
        composed_names: set[str] = set()

        for directory in list_subdirectories(self.source, COMMANDS_DIR):
            path = posixpath.join(COMMANDS_DIR, directory)
            if not is_composable(self.source, path):
                continue
            composed_names.add(directory)
            files.append(
                GeneratedFile(
                    relative_path=f"{COMMANDS_DIR}/{brain_prefix(directory)}.md",
                    content=self.compose(path),
                ),
            )

        for artifact in read_canonical_artifacts(self.source, COMMANDS_DIR):
            if artifact.name in composed_names:
                continue
            files.append(
                GeneratedFile(
                    relative_path=f"{COMMANDS_DIR}/{brain_prefix(artifact.name)}.md",
                    content=self.source.read_text(artifact.relative_path),
                ),
            )
        return files

    def instructions(self, output_path: str) -> list[GeneratedFile]:
        """Emit the composable top-level instructions document, if present."""
        artifact = read_composable(self.source, RULES_DIR)
        if artifact is None:
            return []
        body = compose(self.source, artifact, self.name, self.variables)
        return [GeneratedFile(relative_path=output_path, content=body)]

    def scripts_dir(self) -> str:
        """Directory holding hook scripts for this target."""
        hook_source = self.config.hook_source(self.name)
        if hook_source is not None and hook_source.scripts:
            return template_relative(hook_source.scripts)
        return DEFAULT_SCRIPTS_DIR

    def hook_scripts(self) -> list[GeneratedFile]:
        """Copy hook scripts verbatim to ``hooks/scripts/<name>``."""
        directory = self.scripts_dir()
        return [
            GeneratedFile(
                relative_path=f"{DEFAULT_SCRIPTS_DIR}/{name}",
                content=self.source.read_text(posixpath.join(directory, name)),
            )
            for name in list_plain_files(self.source, directory)
        ]

    def load_mcp(self) -> dict[str, Any] | None:
        """Load the canonical MCP config with ``./`` arguments absolutized.

        Returns:
            The resolved config, or None when it is missing or invalid
        """
        for candidate in MCP_CANDIDATES:
            text = self.source.read_optional_text(candidate)
            if text is None:
                continue
            data = load_json_object(text, candidate)
            if data is None:
                return None
            return resolve_mcp_paths(data, self.source.project_root)
        logger.debug("No MCP config found for %s", self.name)
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source={self.source!r})"

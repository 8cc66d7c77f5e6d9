"""Adapter for the long-form plugin target (``claude-code``).

This target takes full files: rich agent frontmatter, a complete
``hooks/hooks.json``, a complete ``.mcp.json`` and a plugin manifest.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import __description__, __plugin_author__
from ..frontmatter import with_frontmatter
from ..merge import load_json_object, render_json
from ..models import AgentPlatformSettings, GeneratedFile
from ..naming import GLYPH, brain_prefix
from ..reader import read_canonical_artifacts
from .base import (
    AGENTS_DIR,
    PROTOCOLS_DIR,
    RULES_DIR,
    TargetAdapter,
    present,
    template_relative,
)

logger = logging.getLogger(__name__)

AGENT_KEY_ORDER = (
    "name",
    "model",
    "description",
    "memory",
    "color",
    "argument-hint",
    "tools",
    "skills",
)

HOOKS_OUTPUT = "hooks/hooks.json"
MCP_OUTPUT = ".mcp.json"
MANIFEST_OUTPUT = ".claude-plugin/plugin.json"
INSTRUCTIONS_OUTPUT = "instructions/AGENTS.md"


def plugin_manifest() -> dict[str, Any]:
    """Return the fixed plugin manifest document."""
    return {
        "name": GLYPH,
        "description": __description__,
        "author": {"name": __plugin_author__},
    }


class ClaudeCodeAdapter(TargetAdapter):
    """Long-form target: full frontmatter, overwrite-style config files."""

    name = "claude-code"

    def agent_frontmatter(self, name: str, settings: AgentPlatformSettings) -> dict[str, Any]:
        """Build agent frontmatter; ``name`` is always present."""
        candidates = {
            "model": settings.model,
            "description": settings.description,
            "memory": settings.memory,
            "color": settings.color,
            "argument-hint": settings.argument_hint,
            "tools": settings.tools,
            "skills": settings.skills,
        }
        frontmatter: dict[str, Any] = {"name": brain_prefix(name)}
        frontmatter.update({key: value for key, value in candidates.items() if present(value)})
        return frontmatter

    def agents(self) -> list[GeneratedFile]:
        """Emit ``agents/<glyph>-<name>.md`` for every enabled agent."""
        return [
            GeneratedFile(
                relative_path=f"{AGENTS_DIR}/{brain_prefix(agent.name)}.md",
                content=with_frontmatter(
                    self.agent_frontmatter(agent.name, agent.settings),
                    agent.body,
                    AGENT_KEY_ORDER,
                ),
            )
            for agent in self.enabled_agents()
        ]

    def rules(self) -> list[GeneratedFile]:
        """Emit every protocol verbatim as ``rules/<glyph>-<name>.md``."""
        files = [
            GeneratedFile(
                relative_path=f"{RULES_DIR}/{brain_prefix(artifact.name)}.md",
                content=self.source.read_text(artifact.relative_path),
            )
            for artifact in read_canonical_artifacts(self.source, PROTOCOLS_DIR)
        ]
        files.extend(self.instructions(INSTRUCTIONS_OUTPUT))
        return files

    def hooks(self) -> list[GeneratedFile]:
        """Emit the configured hooks source file verbatim.

        Nothing is emitted when the hook map names no source for this
        target, the file is absent, or it is not a JSON object.
        """
        hook_source = self.config.hook_source(self.name)
        if hook_source is None:
            logger.debug("No hooks source configured for %s", self.name)
            return []

        path = template_relative(hook_source.source)
        text = self.source.read_optional_text(path)
        if text is None:
            logger.debug("Hooks source %s not found", path)
            return []
        if load_json_object(text, path) is None:
            return []
        return [GeneratedFile(relative_path=HOOKS_OUTPUT, content=text)]

    def mcp(self) -> list[GeneratedFile]:
        """Emit the resolved MCP config as ``.mcp.json``."""
        config = self.load_mcp()
        if config is None:
            return []
        return [GeneratedFile(relative_path=MCP_OUTPUT, content=render_json(config))]

    def manifest(self) -> list[GeneratedFile]:
        """Emit the plugin manifest."""
        return [GeneratedFile(relative_path=MANIFEST_OUTPUT, content=render_json(plugin_manifest()))]

    def compile(self) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        files.extend(self.agents())
        files.extend(self.skills())
        files.extend(self.commands())
        files.extend(self.rules())
        files.extend(self.hooks())
        files.extend(self.hook_scripts())
        files.extend(self.mcp())
        files.extend(self.manifest())
        logger.info("Compiled %d files for %s", len(files), self.name)
        return files

"""Adapter for the light-frontmatter plugin target (``cursor``).

Agents carry only a description. Hooks and MCP servers are shared with
the host's own config files, so they are emitted as merge payloads for
the installer rather than as full files. There is no plugin manifest.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..frontmatter import with_frontmatter
from ..merge import build_merge_payload, load_json_object, render_merge_payload
from ..models import AgentPlatformSettings, GeneratedFile, HookPlatformSettings, TargetConfig
from ..naming import brain_prefix
from ..reader import read_canonical_artifacts
from ..source import TemplateSource
from .base import (
    AGENTS_DIR,
    DEFAULT_SCRIPTS_DIR,
    PROTOCOLS_DIR,
    RULES_DIR,
    TargetAdapter,
    present,
    template_relative,
)

logger = logging.getLogger(__name__)

RULE_EXTENSION = ".mdc"
REFERENCE_DIR = ".agents"
DEFAULT_HOOKS_SOURCE = "hooks/cursor.json"
HOOKS_OUTPUT = "hooks/hooks.merge.json"
MCP_OUTPUT = "mcp/mcp.merge.json"
INSTRUCTIONS_OUTPUT = "AGENTS.md"
DEFAULT_HOOK_TIMEOUT = 10

# Protocols installed as always-on rules; everything else becomes a
# reference document under ~/.agents/.
PROTOCOLS_AS_RULES = frozenset({"AGENT-INSTRUCTIONS.md"})

# Literal rewrites applied to rule bodies so sibling references point at
# the reference-document location.
REFERENCE_REWRITES: tuple[tuple[str, str], ...] = (
    ("See `AGENT-SYSTEM.md`", "See `~/.agents/AGENT-SYSTEM.md`"),
    ("See SESSION-PROTOCOL.md", "See ~/.agents/SESSION-PROTOCOL.md"),
    ("See `SESSION-PROTOCOL.md`", "See `~/.agents/SESSION-PROTOCOL.md`"),
)


def rewrite_references(body: str) -> str:
    """Apply the reference rewrite table to a rule body."""
    for old, new in REFERENCE_REWRITES:
        body = body.replace(old, new)
    return body


def hook_registration(hook_name: str, settings: HookPlatformSettings) -> dict[str, Any]:
    """Build one inline hook registration entry."""
    script = settings.script or f"{brain_prefix(hook_name)}.js"
    return {
        "matcher": settings.matcher,
        "hooks": [
            {
                "type": "command",
                "command": f"{DEFAULT_SCRIPTS_DIR}/{script}",
                "timeout": settings.timeout or DEFAULT_HOOK_TIMEOUT,
            },
        ],
    }


class CursorAdapter(TargetAdapter):
    """Light-frontmatter target: description-only agents, merge payloads."""

    name = "cursor"

    def __init__(
        self,
        source: TemplateSource,
        config: TargetConfig,
        variables: Mapping[str, str] | None = None,
        rule_protocols: Iterable[str] | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            source: Template tree to read from
            config: Target configuration
            variables: Extra variables applied to every composition
            rule_protocols: Protocol filenames emitted as rules
                (default: ``PROTOCOLS_AS_RULES``)
        """
        super().__init__(source, config, variables)
        self.rule_protocols = frozenset(
            PROTOCOLS_AS_RULES if rule_protocols is None else rule_protocols,
        )

    @staticmethod
    def agent_frontmatter(settings: AgentPlatformSettings) -> dict[str, Any]:
        """Only the description is carried over."""
        if present(settings.description):
            return {"description": settings.description}
        return {}

    def agents(self) -> list[GeneratedFile]:
        """Emit ``agents/<glyph>-<name>.md`` for every enabled agent."""
        return [
            GeneratedFile(
                relative_path=f"{AGENTS_DIR}/{brain_prefix(agent.name)}.md",
                content=with_frontmatter(self.agent_frontmatter(agent.settings), agent.body),
            )
            for agent in self.enabled_agents()
        ]

    def protocols(self) -> list[GeneratedFile]:
        """Split protocols into always-on rules and ``.agents/`` references."""
        files: list[GeneratedFile] = []
        for artifact in read_canonical_artifacts(self.source, PROTOCOLS_DIR):
            if artifact.filename in self.rule_protocols:
                frontmatter = dict(artifact.frontmatter)
                frontmatter["alwaysApply"] = True
                files.append(
                    GeneratedFile(
                        relative_path=f"{RULES_DIR}/{brain_prefix(artifact.name)}{RULE_EXTENSION}",
                        content=with_frontmatter(frontmatter, rewrite_references(artifact.body)),
                    ),
                )
            else:
                files.append(
                    GeneratedFile(
                        relative_path=f"{REFERENCE_DIR}/{artifact.name}.md",
                        content=self.source.read_text(artifact.relative_path),
                    ),
                )
        files.extend(self.instructions(INSTRUCTIONS_OUTPUT))
        return files

    def _hooks_source(self) -> dict[str, Any]:
        hook_source = self.config.hook_source(self.name)
        path = template_relative(hook_source.source) if hook_source else DEFAULT_HOOKS_SOURCE
        text = self.source.read_optional_text(path)
        if text is None:
            return {}
        return load_json_object(text, path) or {}

    def hooks_content(self) -> dict[str, Any]:
        """Combine the hooks source file with inline registrations.

        Inline registrations are appended under their event after any
        entries the source file already declares.
        """
        content = copy.deepcopy(self._hooks_source())
        events = content.get("hooks")
        if not isinstance(events, dict):
            events = {}

        for hook_name, settings in self.config.hook_registrations(self.name):
            existing = events.get(settings.event)
            entries = list(existing) if isinstance(existing, list) else []
            entries.append(hook_registration(hook_name, settings))
            events[settings.event] = entries

        if events:
            content["hooks"] = events
        return content

    def hooks(self) -> list[GeneratedFile]:
        """Emit ``hooks/hooks.merge.json`` when any hooks are declared."""
        content = self.hooks_content()
        if not content.get("hooks"):
            logger.debug("No hooks declared for %s", self.name)
            return []
        payload = build_merge_payload(content)
        return [GeneratedFile(relative_path=HOOKS_OUTPUT, content=render_merge_payload(payload))]

    def mcp(self) -> list[GeneratedFile]:
        """Emit ``mcp/mcp.merge.json`` owning each ``mcpServers.<server>``."""
        config = self.load_mcp()
        if config is None:
            return []
        payload = build_merge_payload(config)
        return [GeneratedFile(relative_path=MCP_OUTPUT, content=render_merge_payload(payload))]

    def compile(self) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        files.extend(self.agents())
        files.extend(self.skills())
        files.extend(self.commands())
        files.extend(self.protocols())
        files.extend(self.hooks())
        files.extend(self.hook_scripts())
        files.extend(self.mcp())
        logger.info("Compiled %d files for %s", len(files), self.name)
        return files

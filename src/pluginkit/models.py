"""Core data models for the PluginKit compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .exceptions import ConfigError
from .naming import is_safe_relative_path, strip_prefix


class AgentTargetStatus(str, Enum):
    """How an agent is configured for one target."""

    CONFIGURED = "configured"
    DISABLED = "disabled"  # explicit null
    UNCONFIGURED = "unconfigured"  # key absent


class AgentPlatformSettings(BaseModel):
    """Per-target settings for one agent.

    Every field is optional. Fields left out of the source document are
    absent from ``model_fields_set``; a field given as ``null`` is present
    but None. Emitters treat both as "not set".
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    model: str | None = Field(default=None, description="Model tag")
    description: str | None = Field(default=None, description="One-line description")
    memory: str | None = Field(default=None, description="Memory handle")
    color: str | None = Field(default=None, description="Display color")
    argument_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("argument_hint", "argument-hint", "argumentHint"),
        description="Argument hint shown by the host",
    )
    tools: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("tools", "allowed_tools", "allowed-tools"),
        description="Allowed tool list",
    )
    skills: list[str] | None = Field(default=None, description="Skill names")


class HookPlatformSettings(BaseModel):
    """Inline hook registration for additive-merge targets."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: str = Field(..., description="Host event name, e.g. afterSave")
    matcher: str = Field(default="", description="Event matcher pattern")
    timeout: int = Field(default=10, description="Timeout in seconds")
    script: str | None = Field(
        default=None,
        description="Script filename under hooks/scripts",
    )

    @field_validator("event")
    @classmethod
    def validate_event(cls, v: str) -> str:
        """Reject empty event names."""
        if not v.strip():
            msg = "Hook event must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Timeouts are whole positive seconds."""
        if v <= 0:
            msg = "Hook timeout must be positive"
            raise ValueError(msg)
        return v


class HookSourceSettings(BaseModel):
    """Names a hooks source file within the template tree."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    source: str = Field(..., description="Hooks source file, relative to the template root")
    scripts: str | None = Field(
        default=None,
        description="Hook scripts directory, relative to the template root",
    )


class TargetConfig(BaseModel):
    """Declarative per-target enablement and settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = Field(default="", description="Informational version string")
    targets: dict[str, Any] = Field(
        default_factory=dict,
        description="Target name to opaque target settings",
    )
    agents: dict[str, dict[str, AgentPlatformSettings | None]] = Field(
        default_factory=dict,
        description="Agent name to per-target settings",
    )
    hooks: dict[str, dict[str, Any] | None] = Field(
        default_factory=dict,
        description="Hook name to per-target settings or source pairs",
    )
    skills: dict[str, Any] = Field(default_factory=dict)
    commands: dict[str, Any] = Field(default_factory=dict)
    protocols: dict[str, Any] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """Accept numeric versions such as ``2`` or ``1.5``."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("agents", mode="before")
    @classmethod
    def drop_agent_metadata(cls, v: Any) -> Any:
        """Keep only mapping or null values under each agent.

        Agent entries may carry descriptive keys such as ``"source"``
        next to the target blocks.
        """
        if not isinstance(v, dict):
            return v
        cleaned: dict[str, Any] = {}
        for agent, targets in v.items():
            if not isinstance(targets, dict):
                cleaned[agent] = targets
                continue
            cleaned[agent] = {
                target: settings
                for target, settings in targets.items()
                if settings is None or isinstance(settings, dict)
            }
        return cleaned

    def _agent_entry(self, name: str) -> dict[str, AgentPlatformSettings | None] | None:
        entry = self.agents.get(name)
        if entry is None and name != strip_prefix(name):
            entry = self.agents.get(strip_prefix(name))
        return entry

    def agent_settings(self, name: str, target: str) -> AgentPlatformSettings | None:
        """Return settings for (agent, target), or None when it should be skipped.

        Absent and explicit-null entries both return None. Names that
        already carry the glyph prefix fall back to their bare form.
        """
        entry = self._agent_entry(name)
        if entry is None:
            return None
        return entry.get(target)

    def agent_status(self, name: str, target: str) -> AgentTargetStatus:
        """Distinguish explicit null from a missing key for authoring tools."""
        entry = self._agent_entry(name)
        if entry is None or target not in entry:
            return AgentTargetStatus.UNCONFIGURED
        if entry[target] is None:
            return AgentTargetStatus.DISABLED
        return AgentTargetStatus.CONFIGURED

    def hook_source(self, target: str) -> HookSourceSettings | None:
        """Return the hooks source file declared for a target, if any.

        The source pair lives in the hook map under the target's own name,
        e.g. ``"hooks": {"claude-code": {"source": ..., "scripts": ...}}``.
        """
        entry = self.hooks.get(target)
        if not isinstance(entry, dict) or not isinstance(entry.get("source"), str):
            return None
        try:
            return HookSourceSettings.model_validate(entry)
        except ValidationError as e:
            msg = f"Invalid hooks source for target '{target}': {e}"
            raise ConfigError(msg, details={"target": target}) from e

    def hook_registrations(self, target: str) -> list[tuple[str, HookPlatformSettings]]:
        """Return inline hook registrations for a target, in document order.

        Raises:
            ConfigError: If a registration block is malformed
        """
        registrations: list[tuple[str, HookPlatformSettings]] = []
        for name, entry in self.hooks.items():
            if not isinstance(entry, dict):
                continue
            settings = entry.get(target)
            if not isinstance(settings, dict) or "event" not in settings:
                continue
            try:
                registrations.append((name, HookPlatformSettings.model_validate(settings)))
            except ValidationError as e:
                msg = f"Invalid hook '{name}' for target '{target}': {e}"
                raise ConfigError(msg, details={"hook": name, "target": target}) from e
        return registrations


class GeneratedFile(BaseModel):
    """One file produced for a target, relative to that target's root."""

    model_config = ConfigDict(frozen=True)

    relative_path: str = Field(..., description="Forward-slash path under the target root")
    content: str = Field(..., description="UTF-8 text content")

    @field_validator("relative_path")
    @classmethod
    def validate_relative_path(cls, v: str) -> str:
        """Generated paths never escape the output root."""
        if not is_safe_relative_path(v):
            msg = f"Generated path must be relative and stay inside the output root: {v!r}"
            raise ValueError(msg)
        return v


class JsonMergePayload(BaseModel):
    """Instruction for an installer to merge content into a host JSON file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    managed_keys: list[str] = Field(
        default_factory=list,
        alias="managedKeys",
        description="Dotted key paths this payload owns",
    )
    content: dict[str, Any] = Field(default_factory=dict)


@dataclass
class CanonicalArtifact:
    """A single-file artifact as authored in the template tree."""

    name: str
    frontmatter: dict[str, Any]
    body: str
    category: str
    filename: str = ""

    @property
    def relative_path(self) -> str:
        """Path of the source file within the template tree."""
        return f"{self.category}/{self.filename or self.name + '.md'}"


@dataclass
class ComposableArtifact:
    """A directory artifact assembled per target from ordered sections."""

    path: str
    sections: list[str]
    variables: dict[str, dict[str, str]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Directory name of the artifact."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    def variables_for(self, target: str) -> dict[str, str]:
        """Return a copy of the variables declared for one target."""
        return dict(self.variables.get(target, {}))

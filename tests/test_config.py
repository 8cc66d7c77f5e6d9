"""Tests for configuration loading and data models."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pluginkit.config import (
    load_config_from_source,
    load_target_config,
    parse_target_config,
)
from pluginkit.exceptions import ConfigError
from pluginkit.models import (
    AgentPlatformSettings,
    AgentTargetStatus,
    GeneratedFile,
    HookPlatformSettings,
    TargetConfig,
)
from pluginkit.source import EmbeddedSource

SAMPLE_CONFIG = {
    "version": "2.1",
    "targets": {"claude-code": {"enabled": True}, "cursor": {}},
    "agents": {
        "architect": {
            "source": "agents/architect.md",
            "claude-code": {
                "model": "opus",
                "allowed_tools": ["Read", "Grep"],
                "color": "#7B68EE",
                "argument-hint": "[topic]",
            },
            "cursor": None,
        },
        "foo": {"cursor": {"description": "Foo"}},
    },
    "hooks": {
        "claude-code": {"source": "templates/hooks/claude-code.json", "scripts": "hooks/scripts"},
        "format-on-save": {"cursor": {"event": "afterSave", "matcher": "*.ts", "timeout": 5}},
        "session-start": {"claude-code": {"event": "SessionStart"}, "cursor": None},
        "disabled": None,
    },
    "skills": {"memory": {}},
}


class TestParseTargetConfig:
    """Test configuration parsing and validation."""

    def test_parses_sample(self) -> None:
        """Test a full configuration document."""
        config = parse_target_config(json.dumps(SAMPLE_CONFIG))
        assert config.version == "2.1"
        assert set(config.targets) == {"claude-code", "cursor"}
        assert config.skills == {"memory": {}}

    def test_tolerates_missing_optional_maps(self) -> None:
        """Test an empty object is a valid configuration."""
        config = parse_target_config("{}")
        assert config.agents == {}
        assert config.hooks == {}
        assert config.commands == {}

    def test_numeric_version_coerced(self) -> None:
        """Test a numeric version becomes a string."""
        assert parse_target_config('{"version": 2}').version == "2"

    def test_unknown_top_level_keys_ignored(self) -> None:
        """Test extra top-level maps are tolerated."""
        config = parse_target_config('{"future": {"x": 1}}')
        assert isinstance(config, TargetConfig)

    def test_invalid_json_is_fatal(self) -> None:
        """Test unparseable JSON raises ConfigError with a location."""
        with pytest.raises(ConfigError) as exc_info:
            parse_target_config('{"agents": ')
        assert "line" in exc_info.value.details

    def test_schema_violation(self) -> None:
        """Test a wrongly-typed map fails schema validation."""
        with pytest.raises(ConfigError, match="schema validation failed"):
            parse_target_config('{"agents": []}')

    def test_agent_target_must_be_object_or_null(self) -> None:
        """Test a numeric agent setting block is rejected."""
        with pytest.raises(ConfigError):
            parse_target_config('{"agents": {"a": {"cursor": 3}}}')

    def test_model_validation_without_schema(self) -> None:
        """Test model validation still runs when schema validation is off."""
        with pytest.raises(ConfigError, match="validation failed"):
            parse_target_config('{"agents": {"a": {"cursor": {"tools": "Read"}}}}', validate=False)

    def test_yaml_format(self) -> None:
        """Test a YAML document is accepted."""
        config = parse_target_config(
            "version: '1'\nagents:\n  foo:\n    cursor:\n      description: Foo\n",
            fmt="yaml",
        )
        assert config.agent_settings("foo", "cursor") == AgentPlatformSettings(description="Foo")

    def test_invalid_yaml_is_fatal(self) -> None:
        """Test unparseable YAML raises ConfigError."""
        with pytest.raises(ConfigError):
            parse_target_config("agents: [unclosed", fmt="yaml")

    def test_empty_yaml_is_empty_config(self) -> None:
        """Test an empty YAML document is an empty configuration."""
        assert parse_target_config("", fmt="yaml").agents == {}


class TestLoadTargetConfig:
    """Test loading configuration from files."""

    def test_load_json_file(self, project_root: Path) -> None:
        """Test loading from a .json file."""
        path = project_root / "target.config.json"
        path.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")
        assert load_target_config(path).version == "2.1"

    def test_load_yaml_file(self, project_root: Path) -> None:
        """Test the suffix selects the YAML parser."""
        path = project_root / "target.config.yaml"
        path.write_text("version: '3'\n", encoding="utf-8")
        assert load_target_config(path).version == "3"

    def test_missing_file(self, project_root: Path) -> None:
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_target_config(project_root / "nope.json")

    def test_load_from_source(self) -> None:
        """Test loading the configuration stored in the template tree."""
        source = EmbeddedSource({"configs/target.config.json": json.dumps(SAMPLE_CONFIG)})
        assert load_config_from_source(source).version == "2.1"
        with pytest.raises(ConfigError):
            load_config_from_source(EmbeddedSource({}))


class TestAgentSettings:
    """Test per-target agent lookups."""

    @pytest.fixture
    def config(self) -> TargetConfig:
        """Create the sample configuration."""
        return parse_target_config(json.dumps(SAMPLE_CONFIG))

    def test_configured(self, config: TargetConfig) -> None:
        """Test settings and aliases for a configured agent."""
        settings = config.agent_settings("architect", "claude-code")
        assert settings is not None
        assert settings.model == "opus"
        assert settings.tools == ["Read", "Grep"]
        assert settings.argument_hint == "[topic]"
        assert settings.memory is None

    def test_null_and_absent_both_skip(self, config: TargetConfig) -> None:
        """Test explicit null and missing entries both return None."""
        assert config.agent_settings("architect", "cursor") is None
        assert config.agent_settings("foo", "claude-code") is None
        assert config.agent_settings("nobody", "cursor") is None

    def test_status_distinguishes_null(self, config: TargetConfig) -> None:
        """Test status keeps explicit null apart from absence."""
        assert config.agent_status("architect", "claude-code") == AgentTargetStatus.CONFIGURED
        assert config.agent_status("architect", "cursor") == AgentTargetStatus.DISABLED
        assert config.agent_status("foo", "claude-code") == AgentTargetStatus.UNCONFIGURED
        assert config.agent_status("nobody", "cursor") == AgentTargetStatus.UNCONFIGURED

    def test_metadata_keys_dropped(self, config: TargetConfig) -> None:
        """Test non-mapping keys such as source are not treated as targets."""
        assert "source" not in config.agents["architect"]

    def test_prefixed_name_falls_back(self, config: TargetConfig) -> None:
        """Test a glyph-prefixed agent name finds its bare entry."""
        settings = config.agent_settings("\U0001f9e0-foo", "cursor")
        assert settings is not None
        assert settings.description == "Foo"

    def test_fields_set_tracks_presence(self) -> None:
        """Test explicit null fields are recorded as present."""
        settings = AgentPlatformSettings.model_validate({"model": None, "color": "red"})
        assert settings.model_fields_set == {"model", "color"}
        assert settings.model is None


class TestHookSettings:
    """Test hook map lookups."""

    @pytest.fixture
    def config(self) -> TargetConfig:
        """Create the sample configuration."""
        return parse_target_config(json.dumps(SAMPLE_CONFIG))

    def test_hook_source(self, config: TargetConfig) -> None:
        """Test the source pair keyed by target name."""
        source = config.hook_source("claude-code")
        assert source is not None
        assert source.source == "templates/hooks/claude-code.json"
        assert source.scripts == "hooks/scripts"
        assert config.hook_source("cursor") is None

    def test_registrations(self, config: TargetConfig) -> None:
        """Test inline registrations for a target, in document order."""
        registrations = config.hook_registrations("cursor")
        assert [name for name, _ in registrations] == ["format-on-save"]
        settings = registrations[0][1]
        assert settings == HookPlatformSettings(event="afterSave", matcher="*.ts", timeout=5)
        assert [name for name, _ in config.hook_registrations("claude-code")] == ["session-start"]

    def test_registration_defaults(self) -> None:
        """Test matcher and timeout defaults."""
        settings = HookPlatformSettings(event="stop")
        assert settings.matcher == ""
        assert settings.timeout == 10
        assert settings.script is None

    def test_invalid_registration(self) -> None:
        """Test a malformed registration raises ConfigError."""
        config = parse_target_config('{"hooks": {"bad": {"cursor": {"event": "x", "timeout": -1}}}}')
        with pytest.raises(ConfigError, match="bad"):
            config.hook_registrations("cursor")


class TestGeneratedFile:
    """Test generated file path validation."""

    @pytest.mark.parametrize(
        "path",
        ["agents/\U0001f9e0-x.md", ".mcp.json", "hooks/scripts/a.js", ".claude-plugin/plugin.json"],
    )
    def test_valid_paths(self, path: str) -> None:
        """Test ordinary relative paths are accepted."""
        assert GeneratedFile(relative_path=path, content="").relative_path == path

    @pytest.mark.parametrize(
        "path",
        ["", "/abs/x.md", "a/../b.md", "..", "a\\b.md", "C:/x.md"],
    )
    def test_invalid_paths(self, path: str) -> None:
        """Test unsafe paths are rejected."""
        with pytest.raises(ValidationError):
            GeneratedFile(relative_path=path, content="")

    def test_frozen(self) -> None:
        """Test generated files are immutable values."""
        generated = GeneratedFile(relative_path="a.md", content="x")
        with pytest.raises(ValidationError):
            generated.content = "y"

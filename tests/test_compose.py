"""Tests for composable artifacts and variable substitution."""

from collections.abc import Callable

import pytest

from pluginkit.compose import (
    compose,
    is_composable,
    parse_order,
    parse_variables,
    read_composable,
)
from pluginkit.exceptions import CompositionError
from pluginkit.models import ComposableArtifact
from pluginkit.source import EmbeddedSource, FilesystemSource
from pluginkit.variables import merge_variables, parse_assignments, substitute

ORCHESTRATOR = {
    "agents/orchestrator/_order.yaml": (
        "sections:\n"
        "  - sections/010-header.md\n"
        "  - \"{tool}/020-identity.md\"\n"
        "  - sections/030-shared.md\n"
    ),
    "agents/orchestrator/_variables.yaml": (
        "claude-code:\n"
        "  worker: teammate\n"
        '  tool_name: "Long Form"\n'
        "cursor:\n"
        "  worker: agent\n"
        '  tool_name: "Light"\n'
    ),
    "agents/orchestrator/sections/010-header.md": "# {tool_name} system\n",
    "agents/orchestrator/sections/030-shared.md": "Spawn a {worker}.\n\n\n",
    "agents/orchestrator/claude-code/020-identity.md": "You are the Team Lead.\n",
    "agents/orchestrator/cursor/020-identity.md": "You are the Orchestrator.\n",
}


class TestSubstitute:
    """Test {name} placeholder substitution."""

    def test_replaces_all_occurrences(self) -> None:
        """Test every occurrence of a known name is replaced."""
        assert substitute("{a} and {a} and {b}", {"a": "x", "b": "y"}) == "x and x and y"

    def test_unknown_placeholders_untouched(self) -> None:
        """Test names missing from the map stay visible."""
        assert substitute("{known} {unknown}", {"known": "k"}) == "k {unknown}"

    def test_empty_map_is_identity(self) -> None:
        """Test an empty map returns the text unchanged."""
        text = "{a} {b}"
        assert substitute(text, {}) == text

    def test_values_not_rescanned(self) -> None:
        """Test substituted values are not expanded again."""
        assert substitute("{a}", {"a": "{b}", "b": "nope"}) == "{b}"

    def test_braces_without_name_untouched(self) -> None:
        """Test code-like braces are left alone."""
        text = "function() { return {}; } {{nested}}"
        assert substitute(text, {"return": "x", "": "y"}) == "function() { return {}; } {{nested}}"

    def test_names_with_spaces(self) -> None:
        """Test names containing whitespace are replaced like any other."""
        assert substitute("Hi {tool name}!", {"tool name": "X"}) == "Hi X!"
        assert substitute("{ padded }", {" padded ": "p"}) == "p"

    def test_names_with_spaces_from_variables_file(self) -> None:
        """Test a spaced key in _variables.yaml reaches the composed body."""
        source = EmbeddedSource(
            {
                "a/_order.yaml": "sections:\n  - one.md\n",
                "a/_variables.yaml": "cursor:\n  tool name: Light\n",
                "a/one.md": "Using {tool name}.\n",
            },
        )
        assert compose(source, "a", "cursor") == "Using Light.\n"

    def test_merge_variables_extras_win(self) -> None:
        """Test extra variables override base ones without mutating them."""
        base = {"a": "1", "b": "2"}
        merged = merge_variables(base, {"b": "3", "c": "4"})
        assert merged == {"a": "1", "b": "3", "c": "4"}
        assert base == {"a": "1", "b": "2"}
        assert merge_variables(base, None) == base

    def test_parse_assignments(self) -> None:
        """Test KEY=VALUE parsing keeps everything after the first '='."""
        assert parse_assignments(["a=1", "url=x=y", "empty="]) == {"a": "1", "url": "x=y", "empty": ""}
        with pytest.raises(ValueError, match="KEY=VALUE"):
            parse_assignments(["novalue"])
        with pytest.raises(ValueError):
            parse_assignments(["=value"])


class TestParseOrder:
    """Test _order.yaml parsing."""

    def test_block_list(self) -> None:
        """Test a standard block list."""
        assert parse_order("sections:\n  - a.md\n  - b.md\n") == ["a.md", "b.md"]

    def test_inline_list(self) -> None:
        """Test an inline list, including a {tool} entry."""
        text = "sections: [sections/010.md, {tool}/020.md, sections/030.md]\n"
        assert parse_order(text) == ["sections/010.md", "{tool}/020.md", "sections/030.md"]

    def test_comments_and_blanks(self) -> None:
        """Test comments and blank lines inside the list are ignored."""
        text = (
            "# Section order\n"
            "sections:\n"
            "  - a.md  # first\n"
            "\n"
            "  # variant section\n"
            "  - '{tool}/b.md'\n"
        )
        assert parse_order(text) == ["a.md", "{tool}/b.md"]

    def test_malformed_entries_dropped(self) -> None:
        """Test escaping, absolute and empty entries are dropped."""
        text = "sections:\n  - ../secret.md\n  - /abs.md\n  - \"\"\n  - ok.md\n  -\n"
        assert parse_order(text) == ["ok.md"]

    def test_missing_sections_key(self) -> None:
        """Test a document without sections yields nothing."""
        assert parse_order("order:\n  - a.md\n") == []
        assert parse_order("") == []

    def test_single_string_entry(self) -> None:
        """Test a scalar sections value is treated as one entry."""
        assert parse_order("sections: only.md\n") == ["only.md"]


class TestParseVariables:
    """Test _variables.yaml parsing."""

    def test_targets_and_values(self) -> None:
        """Test target maps with quoted and bare values."""
        text = (
            "# per-target values\n"
            "claude-code:\n"
            "  worker: teammate\n"
            '  tool_name: "Long Form"\n'
            "  count: 010\n"
            "cursor:\n"
            "  worker: 'agent'  # inline comment\n"
        )
        assert parse_variables(text) == {
            "claude-code": {"worker": "teammate", "tool_name": "Long Form", "count": "010"},
            "cursor": {"worker": "agent"},
        }

    def test_non_map_targets_ignored(self) -> None:
        """Test scalars and lists at the top level are ignored."""
        assert parse_variables("stray: value\nlist:\n  - a\n") == {}

    def test_empty_value(self) -> None:
        """Test an empty value becomes an empty string."""
        assert parse_variables("cursor:\n  blank:\n") == {"cursor": {"blank": ""}}


class TestCompose:
    """Test the composition algorithm."""

    @pytest.fixture
    def source(self, make_source: Callable[[dict[str, str]], FilesystemSource]) -> FilesystemSource:
        """Create a source with the orchestrator artifact."""
        return make_source(ORCHESTRATOR)

    def test_is_composable(self, source: FilesystemSource) -> None:
        """Test detection by _order.yaml presence."""
        assert is_composable(source, "agents/orchestrator")
        assert not is_composable(source, "agents/orchestrator/sections")

    def test_read_composable(self, source: FilesystemSource) -> None:
        """Test metadata loading."""
        artifact = read_composable(source, "agents/orchestrator")
        assert artifact is not None
        assert artifact.name == "orchestrator"
        assert artifact.sections == [
            "sections/010-header.md",
            "{tool}/020-identity.md",
            "sections/030-shared.md",
        ]
        assert artifact.variables_for("cursor") == {"worker": "agent", "tool_name": "Light"}
        assert artifact.variables_for("unknown") == {}
        assert read_composable(source, "agents/missing") is None

    def test_long_form_target(self, source: FilesystemSource) -> None:
        """Test variant selection and substitution for claude-code."""
        body = compose(source, "agents/orchestrator", "claude-code")
        assert body == "# Long Form system\n\nYou are the Team Lead.\n\nSpawn a teammate.\n"

    def test_light_target(self, source: FilesystemSource) -> None:
        """Test variant selection and substitution for cursor."""
        body = compose(source, "agents/orchestrator", "cursor")
        assert body == "# Light system\n\nYou are the Orchestrator.\n\nSpawn a agent.\n"

    def test_missing_variant_is_skipped(self, source: FilesystemSource) -> None:
        """Test a missing {tool} section is silently skipped."""
        (source.root / "agents/orchestrator/cursor/020-identity.md").unlink()
        body = compose(source, "agents/orchestrator", "cursor")
        assert body == "# Light system\n\nSpawn a agent.\n"

    def test_unknown_target_skips_all_variants(self, source: FilesystemSource) -> None:
        """Test a target with no variant folder gets shared sections only."""
        body = compose(source, "agents/orchestrator", "other")
        assert body == "# {tool_name} system\n\nSpawn a {worker}.\n"

    def test_missing_shared_section_is_fatal(self, source: FilesystemSource) -> None:
        """Test a missing non-variant section raises CompositionError."""
        (source.root / "agents/orchestrator/sections/030-shared.md").unlink()
        with pytest.raises(CompositionError) as exc_info:
            compose(source, "agents/orchestrator", "claude-code")
        assert exc_info.value.details["section"] == "sections/030-shared.md"

    def test_extra_variables_override(self, source: FilesystemSource) -> None:
        """Test caller variables win over per-target ones."""
        body = compose(source, "agents/orchestrator", "claude-code", {"worker": "subagent"})
        assert "Spawn a subagent." in body

    def test_not_composable_raises(self, source: FilesystemSource) -> None:
        """Test composing a plain directory fails."""
        with pytest.raises(CompositionError):
            compose(source, "agents/orchestrator/sections", "cursor")

    def test_accepts_loaded_artifact(self, source: FilesystemSource) -> None:
        """Test composing an already-loaded artifact."""
        artifact = read_composable(source, "agents/orchestrator")
        assert artifact is not None
        assert compose(source, artifact, "cursor") == compose(source, "agents/orchestrator", "cursor")

    def test_deterministic(self, source: FilesystemSource) -> None:
        """Test repeated composition is byte-identical."""
        first = compose(source, "agents/orchestrator", "claude-code")
        second = compose(source, "agents/orchestrator", "claude-code")
        assert first == second


class TestComposeBoundaries:
    """Test composition boundary behaviour on an in-memory source."""

    def test_shared_only_is_target_independent(self) -> None:
        """Test shared-only artifacts compose identically for every target."""
        source = EmbeddedSource(
            {
                "commands/start/_order.yaml": "sections:\n  - one.md\n  - two.md\n",
                "commands/start/one.md": "First\n",
                "commands/start/two.md": "Second",
            },
        )
        bodies = {target: compose(source, "commands/start", target) for target in ("claude-code", "cursor", "x")}
        assert set(bodies.values()) == {"First\n\nSecond\n"}

    def test_empty_variables_concatenation(self) -> None:
        """Test sections are joined with one blank line and one trailing newline."""
        source = EmbeddedSource(
            {
                "rules/_order.yaml": "sections: [a.md, b.md, c.md]\n",
                "rules/a.md": "A\n\n\n",
                "rules/b.md": "\n",
                "rules/c.md": "  C with {braces}  \n",
            },
        )
        assert compose(source, "rules", "cursor") == "A\n\n  C with {braces}  \n"

    def test_empty_order(self) -> None:
        """Test an artifact with no sections composes to a single newline."""
        artifact = ComposableArtifact(path="agents/empty", sections=[])
        assert compose(EmbeddedSource({}), artifact, "cursor") == "\n"

    def test_variant_folder_for_every_target(self) -> None:
        """Test {tool} resolves to the exact target name."""
        source = EmbeddedSource(
            {
                "a/_order.yaml": "sections:\n  - {tool}.md\n",
                "a/claude-code.md": "long",
                "a/cursor.md": "light",
            },
        )
        assert compose(source, "a", "claude-code") == "long\n"
        assert compose(source, "a", "cursor") == "light\n"

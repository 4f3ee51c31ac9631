"""
Unit tests for schema validation.

Tests cover:
- CommandPattern parsing (ask alias)
- PolicyConfig parsing (camelCase keys, null tiers, defaults)
- Verdict constructors
- YAML loading helpers and their errors
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from damage_control.errors import ConfigParseError, ConfigValidationError
from damage_control.schema import (
    CommandPattern,
    PolicyConfig,
    PolicyTier,
    Verdict,
    load_config,
    load_config_from_string,
)


# =============================================================================
# CommandPattern Tests
# =============================================================================


class TestCommandPattern:
    """Tests for CommandPattern model."""

    def test_minimal_pattern(self) -> None:
        """A pattern only needs the regex."""
        entry = CommandPattern(pattern=r"\brm\b")
        assert entry.reason == ""
        assert entry.advisory is False

    def test_ask_alias(self) -> None:
        """The YAML key `ask` populates advisory."""
        entry = CommandPattern.model_validate({"pattern": "x", "reason": "r", "ask": True})
        assert entry.advisory is True

    def test_empty_pattern_unusable(self) -> None:
        """An empty regex is kept but flagged so it never matches."""
        assert CommandPattern(pattern="").usable is False
        assert CommandPattern(pattern="x").usable is True

    def test_unknown_key_ignored(self) -> None:
        """Extra keys on an entry do not invalidate it."""
        entry = CommandPattern.model_validate({"pattern": "x", "note": "from the wiki"})
        assert entry.pattern == "x"

    def test_scalar_pattern_read_as_text(self) -> None:
        """An unquoted number in YAML is still a pattern."""
        entry = CommandPattern.model_validate({"pattern": 777, "reason": 42})
        assert entry.pattern == "777"
        assert entry.reason == "42"

    def test_missing_pattern(self) -> None:
        """An entry without a pattern loads as unusable."""
        entry = CommandPattern.model_validate({"reason": "forgot the regex"})
        assert entry.pattern == ""
        assert entry.usable is False

    def test_bare_string_entry(self) -> None:
        """A plain string entry is taken as the pattern."""
        assert CommandPattern.model_validate(r"\bshred\b").pattern == r"\bshred\b"

    def test_non_scalar_entry(self) -> None:
        """A list where an entry belongs loads as unusable."""
        assert CommandPattern.model_validate(["a", "b"]).usable is False

    @pytest.mark.parametrize("value,expected", [("yes", True), ("true", True), ("no", False)])
    def test_text_ask_flag(self, value: str, expected: bool) -> None:
        """A quoted ask value is read leniently."""
        entry = CommandPattern.model_validate({"pattern": "x", "ask": value})
        assert entry.advisory is expected

    def test_frozen(self) -> None:
        """Patterns cannot be modified after creation."""
        entry = CommandPattern(pattern="x")
        with pytest.raises(ValidationError):
            entry.pattern = "y"  # type: ignore[misc]


# =============================================================================
# PolicyConfig Tests
# =============================================================================


class TestPolicyConfig:
    """Tests for PolicyConfig model."""

    def test_defaults_empty(self) -> None:
        """Every tier defaults to empty."""
        config = PolicyConfig()
        assert config.command_patterns == []
        assert config.zero_access_paths == []
        assert config.read_only_paths == []
        assert config.no_delete_paths == []
        assert config.is_empty is True

    def test_camel_case_keys(self) -> None:
        """YAML-style keys map onto the tiers."""
        config = PolicyConfig.model_validate({
            "bashToolPatterns": [{"pattern": "x", "reason": "r"}],
            "zeroAccessPaths": ["~/.ssh/"],
            "readOnlyPaths": ["/etc/"],
            "noDeletePaths": ["LICENSE"],
        })
        assert config.command_patterns[0].pattern == "x"
        assert config.zero_access_paths == ["~/.ssh/"]
        assert config.read_only_paths == ["/etc/"]
        assert config.no_delete_paths == ["LICENSE"]

    def test_snake_case_keys(self) -> None:
        """Attribute names work as keys too."""
        config = PolicyConfig(zero_access_paths=["*.pem"])
        assert config.zero_access_paths == ["*.pem"]

    def test_null_tier_is_empty(self) -> None:
        """A key with no value is an empty tier."""
        config = PolicyConfig.model_validate({"zeroAccessPaths": None, "bashToolPatterns": None})
        assert config.zero_access_paths == []
        assert config.command_patterns == []

    def test_scalar_specifiers_read_as_text(self) -> None:
        """Numbers are text; null or nested entries become empty specifiers."""
        config = PolicyConfig.model_validate({
            "readOnlyPaths": [2024, "/etc/"],
            "zeroAccessPaths": [None, {"path": "oops"}, "*.pem"],
        })
        assert config.read_only_paths == ["2024", "/etc/"]
        assert config.zero_access_paths == ["", "", "*.pem"]

    def test_model_instances_accepted(self) -> None:
        """Already-built entries pass through unchanged."""
        entry = CommandPattern(pattern="x", reason="r", advisory=True)
        config = PolicyConfig(command_patterns=[entry])
        assert config.command_patterns[0] == entry

    def test_extra_sections_ignored(self) -> None:
        """Unrelated top-level keys do not break loading."""
        config = PolicyConfig.model_validate({"readOnlyPaths": ["/etc/"], "notes": "hi"})
        assert config.read_only_paths == ["/etc/"]

    def test_summary(self, sample_config: PolicyConfig) -> None:
        """summary() counts entries per tier."""
        assert sample_config.summary() == {
            "command_pattern": 3,
            "zero_access": 3,
            "read_only": 2,
            "no_delete": 2,
        }
        assert sample_config.is_empty is False

    def test_frozen(self, sample_config: PolicyConfig) -> None:
        """A loaded config cannot be reassigned."""
        with pytest.raises(ValidationError):
            sample_config.zero_access_paths = []  # type: ignore[misc]


# =============================================================================
# Verdict Tests
# =============================================================================


class TestVerdict:
    """Tests for Verdict model."""

    def test_allow(self) -> None:
        """Allow verdicts carry no reason."""
        verdict = Verdict.allow()
        assert verdict.blocked is False
        assert verdict.reason == ""
        assert verdict.pattern is None

    def test_block(self) -> None:
        """Block verdicts record tier, pattern and operation."""
        verdict = Verdict.block(
            "Blocked: delete operation on no-delete path LICENSE",
            tier=PolicyTier.NO_DELETE,
            pattern="LICENSE",
            operation="delete",
        )
        assert verdict.blocked is True
        assert verdict.tier == PolicyTier.NO_DELETE
        assert verdict.operation == "delete"
        assert verdict.ask is False

    def test_json_dump(self) -> None:
        """Enums serialize to their string values."""
        verdict = Verdict.block("r", tier=PolicyTier.ZERO_ACCESS, pattern="*.pem")
        data = verdict.model_dump(mode="json")
        assert data["tier"] == "zero_access"


# =============================================================================
# Loading Tests
# =============================================================================


class TestLoading:
    """Tests for YAML loading helpers."""

    def test_load_from_string(self, sample_patterns_yaml: str) -> None:
        """The shared sample parses into all four tiers."""
        config = load_config_from_string(sample_patterns_yaml)
        assert config.command_patterns[2].advisory is True
        assert "*.pem" in config.zero_access_paths

    def test_load_from_file(self, patterns_file: Path) -> None:
        """Loading from disk gives the same result."""
        config = load_config(patterns_file)
        assert config.no_delete_paths == ["LICENSE", ".git/"]

    def test_empty_document(self) -> None:
        """An empty YAML document is an empty policy."""
        assert load_config_from_string("").is_empty is True

    def test_missing_file(self, temp_dir: Path) -> None:
        """load_config itself does not hide a missing file."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """Broken YAML raises ConfigParseError with the path."""
        path = temp_dir / "bad.yaml"
        path.write_text("zeroAccessPaths: [unclosed\n")
        with pytest.raises(ConfigParseError) as exc_info:
            load_config(path)
        assert exc_info.value.config_path == str(path)

    def test_wrong_shape(self) -> None:
        """A tier with the wrong type raises ConfigValidationError."""
        with pytest.raises(ConfigValidationError):
            load_config_from_string("zeroAccessPaths: 42\n")

    def test_top_level_list(self) -> None:
        """The document must be a mapping."""
        with pytest.raises(ConfigValidationError):
            load_config_from_string("- a\n- b\n")

    def test_bundled_patterns_load(self) -> None:
        """The default patterns shipped with the package are valid."""
        from damage_control.config import bundled_config_path

        config = load_config(bundled_config_path())
        assert config.command_patterns
        assert config.zero_access_paths
        assert config.read_only_paths
        assert config.no_delete_paths

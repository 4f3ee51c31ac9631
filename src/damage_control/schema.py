"""
Schema definitions for damage-control.

This module defines the Pydantic models used throughout the package:
- CommandPattern/PolicyConfig: The four policy tiers loaded from YAML
- Verdict: The result of evaluating a command or path
- InvalidPattern: A pattern that failed to compile at load time

Design Decisions:
    - Models are immutable (frozen=True); a loaded config is never mutated
    - YAML keys are camelCase (bashToolPatterns, zeroAccessPaths, ...) and
      map to snake_case attributes through aliases
    - Tiers that are missing or null in the YAML default to empty lists
    - A malformed entry never rejects the file: scalars are read as text,
      unknown keys are ignored, and anything else becomes an empty entry
      that never matches and is reported by find_invalid_patterns()
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from damage_control.errors import ConfigParseError, ConfigValidationError


def _as_text(value: Any) -> str:
    """Read a YAML scalar as text; non-scalars become "" (never matches)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


# =============================================================================
# Enums
# =============================================================================


class PolicyTier(str, Enum):
    """
    The four policy tiers, in evaluation order.

    Command patterns are only consulted for shell commands; file tools start
    at zero-access.
    """

    COMMAND_PATTERN = "command_pattern"
    ZERO_ACCESS = "zero_access"
    READ_ONLY = "read_only"
    NO_DELETE = "no_delete"


class AccessMode(str, Enum):
    """How much of the policy applies to a path-based query."""

    FULL_CHECK = "full_check"
    ZERO_ACCESS_ONLY = "zero_access_only"


# =============================================================================
# Policy Models
# =============================================================================


class CommandPattern(BaseModel):
    """
    A regular expression matched against whole shell commands.

    Attributes:
        pattern: Regex source, searched case-insensitively and unanchored
        reason: Explanation surfaced in the verdict
        advisory: Marked "ask" in the YAML. Blocks exactly like any other
            entry; the flag is only reported back on the verdict.

    An empty pattern (missing, null or not a scalar in the YAML) is kept so
    entry positions stay stable, but it is never evaluated.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    pattern: str = Field(
        default="",
        description="Regex searched inside the command text",
    )
    reason: str = Field(
        default="",
        description="Human-readable reason for blocking",
    )
    advisory: bool = Field(
        default=False,
        alias="ask",
        description="Pattern was written as a confirmation prompt",
    )

    @model_validator(mode="before")
    @classmethod
    def coerce_entry(cls, data: Any) -> Any:
        """Accept scalar patterns/reasons and non-mapping entries."""
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            return {"pattern": _as_text(data)}
        data = dict(data)
        data["pattern"] = _as_text(data.get("pattern"))
        if "reason" in data:
            data["reason"] = _as_text(data["reason"])
        for key in ("ask", "advisory"):
            if key in data and not isinstance(data[key], bool):
                data[key] = _as_text(data[key]).lower() in ("true", "yes", "on", "1")
        return data

    @property
    def usable(self) -> bool:
        """False for an empty pattern, which would match every command."""
        return bool(self.pattern)


class PolicyConfig(BaseModel):
    """
    Complete patterns configuration.

    Attributes:
        command_patterns: Explicit dangerous-command regexes, in order
        zero_access_paths: Path specifiers where no operation is allowed
        read_only_paths: Path specifiers where modifications are blocked
        no_delete_paths: Path specifiers where only deletion is blocked
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    command_patterns: list[CommandPattern] = Field(
        default_factory=list,
        alias="bashToolPatterns",
        description="Explicit command patterns, evaluated in order",
    )
    zero_access_paths: list[str] = Field(
        default_factory=list,
        alias="zeroAccessPaths",
        description="No operations allowed (read, write, enumerate)",
    )
    read_only_paths: list[str] = Field(
        default_factory=list,
        alias="readOnlyPaths",
        description="Reads allowed, modifications blocked",
    )
    no_delete_paths: list[str] = Field(
        default_factory=list,
        alias="noDeletePaths",
        description="Everything allowed except deletion",
    )

    @field_validator(
        "command_patterns",
        "zero_access_paths",
        "read_only_paths",
        "no_delete_paths",
        mode="before",
    )
    @classmethod
    def null_tier_is_empty(cls, v: Any) -> Any:
        """Treat `key:` with no value in YAML as an empty tier."""
        if v is None:
            return []
        return v

    @field_validator("zero_access_paths", "read_only_paths", "no_delete_paths", mode="before")
    @classmethod
    def specifiers_as_text(cls, v: Any) -> Any:
        """Read scalar specifiers (`- 2024`) as text; others become ""."""
        if isinstance(v, list):
            return [_as_text(item) for item in v]
        return v

    def summary(self) -> dict[str, int]:
        """Number of entries in each tier."""
        return {
            PolicyTier.COMMAND_PATTERN.value: len(self.command_patterns),
            PolicyTier.ZERO_ACCESS.value: len(self.zero_access_paths),
            PolicyTier.READ_ONLY.value: len(self.read_only_paths),
            PolicyTier.NO_DELETE.value: len(self.no_delete_paths),
        }

    @property
    def is_empty(self) -> bool:
        """True when no tier has any entry (everything is allowed)."""
        return not any(self.summary().values())


# =============================================================================
# Runtime Models
# =============================================================================


class Verdict(BaseModel):
    """
    Result of evaluating a command or path against the policy.

    Attributes:
        blocked: Whether the operation must be denied
        reason: Empty when allowed, otherwise names tier, pattern and operation
        tier: Which tier matched
        pattern: The command regex or path specifier that matched
        operation: Detected operation (write, delete, ...) for command checks
        ask: The matching command pattern was marked advisory
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    blocked: bool = Field(..., description="Whether the operation is denied")
    reason: str = Field(default="", description="Explanation of the decision")
    tier: PolicyTier | None = Field(default=None, description="Matching tier")
    pattern: str | None = Field(default=None, description="Matching pattern")
    operation: str | None = Field(default=None, description="Detected operation")
    ask: bool = Field(default=False, description="Matched an advisory pattern")

    @classmethod
    def allow(cls) -> "Verdict":
        """Create an ALLOW verdict."""
        return cls(blocked=False, reason="")

    @classmethod
    def block(
        cls,
        reason: str,
        tier: PolicyTier,
        pattern: str,
        operation: str | None = None,
        ask: bool = False,
    ) -> "Verdict":
        """Create a BLOCK verdict."""
        return cls(
            blocked=True,
            reason=reason,
            tier=tier,
            pattern=pattern,
            operation=operation,
            ask=ask,
        )


class InvalidPattern(BaseModel):
    """A configured pattern that cannot be compiled and will never match."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tier: PolicyTier
    index: int = Field(..., ge=0)
    pattern: str
    error: str


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def _validate(data: Any, source: str | None) -> PolicyConfig:
    if data is None:
        data = {}
    try:
        return PolicyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(
            config_path=source,
            underlying_error=str(e),
        ) from e


def load_config(path: Path | str) -> PolicyConfig:
    """
    Load a patterns config from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated PolicyConfig object

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigParseError: If the file is not valid YAML
        ConfigValidationError: If the YAML doesn't match the schema
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigParseError(config_path=str(path), underlying_error=str(e)) from e

    return _validate(data, str(path))


def load_config_from_string(content: str) -> PolicyConfig:
    """Load a patterns config from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(underlying_error=str(e)) from e
    return _validate(data, None)

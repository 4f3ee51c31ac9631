"""
Exception hierarchy for damage-control.

All damage-control exceptions inherit from DamageControlError, allowing
callers to catch every package-specific exception with a single except clause.

Exception Categories:
    - PolicyDeniedError: A tool call was blocked by a verdict
    - ConfigError: The patterns file could not be read or validated

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (tool, args, config path where applicable)
    - Errors are both human-readable and machine-parseable

The policy engine itself never raises these. A blocked verdict is a normal
return value; the guard is what turns it into a PolicyDeniedError.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Policy errors: 1xxx
ERROR_POLICY_DENIED = 1001
ERROR_POLICY_COMMAND_BLOCKED = 1002
ERROR_POLICY_PATH_BLOCKED = 1003

# Configuration errors: 2xxx
ERROR_CONFIG_INVALID = 2001
ERROR_CONFIG_PARSE = 2002
ERROR_CONFIG_VALIDATION = 2003


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class DamageControlError(Exception):
    """
    Base exception for all damage-control errors.

    Two places raise these: Guard.enforce() when a tool call gets a blocked
    verdict, and the config loader when a patterns file exists but cannot
    be parsed or does not fit the schema. `message` is what the agent host
    shows (for denials, the "SECURITY: Blocked ..." text), and to_dict() is
    the payload `damage-control hook` prints for a blocked call.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Policy Errors
# =============================================================================


@dataclass
class PolicyDeniedError(DamageControlError):
    """
    Raised by the guard when a tool call receives a blocked verdict.

    Attributes:
        tool: Name of the tool that was blocked
        tool_args: Arguments that were provided
        reason: Verdict reason from the policy engine
        tier: Which policy tier produced the verdict
    """

    tool: str = ""
    tool_args: dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    tier: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"SECURITY: {self.reason}"
        if self.code == 0:
            self.code = ERROR_POLICY_DENIED
        self.context.update({
            "tool": self.tool,
            "tool_args": self.tool_args,
            "reason": self.reason,
            "tier": self.tier,
        })


@dataclass
class CommandBlockedError(PolicyDeniedError):
    """Raised when a shell command is blocked."""

    command: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_POLICY_COMMAND_BLOCKED
        super().__post_init__()
        self.context["command"] = self.command


@dataclass
class PathBlockedError(PolicyDeniedError):
    """Raised when a file tool targets a protected path."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_POLICY_PATH_BLOCKED
        super().__post_init__()
        self.context["path"] = self.path


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigError(DamageControlError):
    """
    Base class for patterns file errors.

    A missing patterns file is not an error (it loads as an empty policy).
    These are raised only when a file exists but cannot be used.

    Attributes:
        config_path: Path of the patterns file, if loaded from disk
        underlying_error: Text of the original exception
    """

    config_path: str | None = None
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            source = self.config_path or "<string>"
            self.message = f"Invalid patterns config {source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({
            "config_path": self.config_path,
            "underlying_error": self.underlying_error,
        })


@dataclass
class ConfigParseError(ConfigError):
    """Raised when the patterns file is not valid YAML."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_CONFIG_PARSE
        if not self.suggestion:
            self.suggestion = "Check the YAML syntax of the patterns file"
        super().__post_init__()


@dataclass
class ConfigValidationError(ConfigError):
    """Raised when the YAML does not match the patterns schema."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_CONFIG_VALIDATION
        if not self.suggestion:
            self.suggestion = (
                "Expected keys: bashToolPatterns, zeroAccessPaths, "
                "readOnlyPaths, noDeletePaths"
            )
        super().__post_init__()

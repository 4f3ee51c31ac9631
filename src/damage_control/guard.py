"""
Tool-call guard.

The guard sits between an agent host and the policy engine. It knows which
tools run shell commands, which write files and which only read or list,
pulls the relevant argument out of the tool call, asks the engine, logs
blocked calls, and raises when the host wants an exception.

Tool dispatch:
    bash                -> command,   all tiers
    write, edit, patch  -> file path, zero-access + read-only
    read                -> file path, zero-access only
    glob, grep, list    -> directory, zero-access only

Unknown tools, and calls without a usable target, are allowed.
"""

from __future__ import annotations

import logging
from typing import Any

from damage_control.config import ConfigLoader
from damage_control.errors import CommandBlockedError, PathBlockedError, PolicyDeniedError
from damage_control.policy.engine import PolicyEngine
from damage_control.schema import AccessMode, PolicyConfig, Verdict

logger = logging.getLogger(__name__)

SHELL_TOOLS = frozenset({"bash"})
WRITE_TOOLS = frozenset({"write", "edit", "patch"})
READ_TOOLS = frozenset({"read"})
LIST_TOOLS = frozenset({"glob", "grep", "list"})

# Argument names hosts use for the same thing, tried in order
COMMAND_FIELDS = ("command",)
FILE_PATH_FIELDS = ("filePath", "file_path", "path")
DIRECTORY_FIELDS = ("path", "directory", "dir")

LOG_COMMAND_CHARS = 80


def first_field(args: dict[str, Any], candidates: tuple[str, ...]) -> str | None:
    """Return the first non-empty string value among `candidates`."""
    for name in candidates:
        value = args.get(name)
        if isinstance(value, str) and value:
            return value
    return None


def _shorten(command: str) -> str:
    if len(command) > LOG_COMMAND_CHARS:
        return command[:LOG_COMMAND_CHARS] + "..."
    return command


class Guard:
    """
    Checks agent tool calls against a patterns config.

    Usage:
        guard = Guard.from_loader(ConfigLoader())
        guard.enforce("bash", {"command": "rm -rf ~"})   # raises

    Attributes:
        engine: The policy engine doing the matching
    """

    def __init__(self, config: PolicyConfig, home: str | None = None) -> None:
        """
        Initialize the guard.

        Args:
            config: Policy configuration to enforce
            home: Override for "~" expansion (defaults to the current user's)
        """
        self.engine = PolicyEngine(config, home=home)
        counts = config.summary()
        logger.info(
            "Damage control loaded: %d bash patterns, %d zero-access paths, "
            "%d read-only paths, %d no-delete paths",
            counts["command_pattern"],
            counts["zero_access"],
            counts["read_only"],
            counts["no_delete"],
        )

    @classmethod
    def from_loader(cls, loader: ConfigLoader, home: str | None = None) -> Guard:
        """Build a guard from a config loader, loading it if needed."""
        return cls(loader.load(), home=home)

    @property
    def config(self) -> PolicyConfig:
        """The configuration being enforced."""
        return self.engine.config

    def check(self, tool: str, args: dict[str, Any]) -> Verdict:
        """
        Evaluate a tool call without raising.

        Args:
            tool: Tool name as reported by the host (case-insensitive)
            args: Tool arguments

        Returns:
            The engine's verdict for the relevant target
        """
        tool = tool.lower()

        if tool in SHELL_TOOLS:
            command = first_field(args, COMMAND_FIELDS)
            if command is None:
                return Verdict.allow()
            return self.engine.check_command(command)

        if tool in WRITE_TOOLS:
            path = first_field(args, FILE_PATH_FIELDS)
            mode = AccessMode.FULL_CHECK
        elif tool in READ_TOOLS:
            path = first_field(args, FILE_PATH_FIELDS)
            mode = AccessMode.ZERO_ACCESS_ONLY
        elif tool in LIST_TOOLS:
            path = first_field(args, DIRECTORY_FIELDS)
            mode = AccessMode.ZERO_ACCESS_ONLY
        else:
            return Verdict.allow()

        if path is None:
            return Verdict.allow()
        return self.engine.check_path(path, mode)

    def enforce(self, tool: str, args: dict[str, Any]) -> Verdict:
        """
        Evaluate a tool call and raise if it is blocked.

        Returns:
            The (allowing) verdict

        Raises:
            CommandBlockedError: A shell command was blocked
            PathBlockedError: A file or directory target was blocked
        """
        verdict = self.check(tool, args)
        if not verdict.blocked:
            return verdict

        error = self.denial_for(tool, args, verdict)
        if isinstance(error, CommandBlockedError):
            logger.warning(
                "BLOCKED %s: %s | cmd: %s", tool, verdict.reason, _shorten(error.command)
            )
        else:
            logger.warning("BLOCKED %s: %s | path: %s", tool, verdict.reason, error.path)
        raise error

    def denial_for(
        self,
        tool: str,
        args: dict[str, Any],
        verdict: Verdict,
    ) -> PolicyDeniedError:
        """Build the exception describing a blocked verdict."""
        name = tool.lower()
        tier = verdict.tier.value if verdict.tier else None

        if name in SHELL_TOOLS:
            return CommandBlockedError(
                tool=tool,
                tool_args=args,
                reason=verdict.reason,
                tier=tier,
                command=first_field(args, COMMAND_FIELDS) or "",
            )

        if name in LIST_TOOLS:
            path = first_field(args, DIRECTORY_FIELDS) or ""
            message = f"SECURITY: Blocked {tool} on {verdict.reason}: {path}"
        elif name in READ_TOOLS:
            path = first_field(args, FILE_PATH_FIELDS) or ""
            message = f"SECURITY: Blocked read of {verdict.reason}: {path}"
        else:
            path = first_field(args, FILE_PATH_FIELDS) or ""
            message = f"SECURITY: Blocked {tool} to {verdict.reason}: {path}"

        return PathBlockedError(
            message=message,
            tool=tool,
            tool_args=args,
            reason=verdict.reason,
            tier=tier,
            path=path,
        )

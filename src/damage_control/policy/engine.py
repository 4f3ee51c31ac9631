"""
Policy Engine for damage-control.

The engine decides whether a shell command or a file path must be blocked.

Design Principles:
    - Tiered: command patterns, zero-access, read-only, no-delete, in that
      order. The first match wins and later tiers are not consulted.
    - Fail-open per pattern: a pattern that does not compile is skipped,
      it never disables the rest of its tier.
    - Pure: same (query, config) always gives the same verdict. The engine
      holds the immutable config and the compiled command patterns, nothing
      else, and does no I/O or logging.

How it works:
    Shell commands:
        1. Search each command pattern (case-insensitive, unanchored)
        2. Look for any mention of a zero-access path
        3. Look for a modifying operation on a read-only path
        4. Look for a delete operation on a no-delete path
    File paths:
        1. Match zero-access paths
        2. Match read-only paths (full_check mode only)
"""

import re

from damage_control.policy.globs import glob_to_search_regex, is_glob
from damage_control.policy.operations import (
    NO_DELETE_BLOCKED,
    READ_ONLY_BLOCKED,
    OperationTemplate,
    describe_operation,
    find_operation,
)
from damage_control.policy.paths import expand_home, matches_path
from damage_control.schema import (
    AccessMode,
    CommandPattern,
    PolicyConfig,
    PolicyTier,
    Verdict,
)

READ_ONLY_LABEL = "read-only path"
NO_DELETE_LABEL = "no-delete path"


def compile_command_pattern(entry: CommandPattern) -> re.Pattern[str] | None:
    """Compile a command pattern, or return None if it is empty or invalid."""
    if not entry.usable:
        return None
    try:
        return re.compile(entry.pattern, re.IGNORECASE)
    except re.error:
        return None


class PolicyEngine:
    """
    Evaluates commands and paths against a PolicyConfig.

    Usage:
        engine = PolicyEngine(config)
        verdict = engine.check_command("rm -rf /")
        if verdict.blocked:
            # refuse the tool call
            ...

    Attributes:
        config: The immutable configuration being enforced
        home: Home directory used for "~" expansion (None = current user's)
    """

    def __init__(self, config: PolicyConfig, home: str | None = None) -> None:
        """
        Initialize the engine and compile command patterns.

        Args:
            config: Policy configuration to enforce
            home: Override for the home directory used in "~" expansion
        """
        self.config = config
        self.home = home
        self._command_patterns: list[tuple[CommandPattern, re.Pattern[str] | None]] = [
            (entry, compile_command_pattern(entry)) for entry in config.command_patterns
        ]

    # =========================================================================
    # Shell Commands
    # =========================================================================

    def check_command(self, command: str) -> Verdict:
        """
        Evaluate a shell command against all four tiers.

        Args:
            command: The literal command string the tool will run

        Returns:
            The first blocking verdict, or an allow verdict
        """
        for check in (
            self._check_command_patterns,
            self._check_zero_access_command,
            self._check_read_only_command,
            self._check_no_delete_command,
        ):
            verdict = check(command)
            if verdict.blocked:
                return verdict
        return Verdict.allow()

    def _check_command_patterns(self, command: str) -> Verdict:
        # Advisory ("ask") entries block too; there is no confirmation step.
        for entry, regex in self._command_patterns:
            if regex is None:
                continue
            if regex.search(command):
                return Verdict.block(
                    f"Blocked: {entry.reason}",
                    tier=PolicyTier.COMMAND_PATTERN,
                    pattern=entry.pattern,
                    ask=entry.advisory,
                )
        return Verdict.allow()

    def _check_zero_access_command(self, command: str) -> Verdict:
        for spec in self.config.zero_access_paths:
            if not spec:
                continue
            if is_glob(spec):
                try:
                    found = re.search(glob_to_search_regex(spec), command, re.IGNORECASE)
                except re.error:
                    continue
                if found:
                    return Verdict.block(
                        f"Blocked: zero-access pattern {spec} (no operations allowed)",
                        tier=PolicyTier.ZERO_ACCESS,
                        pattern=spec,
                    )
            else:
                expanded = expand_home(spec, self.home)
                if expanded in command or spec in command:
                    return Verdict.block(
                        f"Blocked: zero-access path {spec} (no operations allowed)",
                        tier=PolicyTier.ZERO_ACCESS,
                        pattern=spec,
                    )
        return Verdict.allow()

    def _check_read_only_command(self, command: str) -> Verdict:
        return self._check_operations(
            command,
            self.config.read_only_paths,
            READ_ONLY_BLOCKED,
            PolicyTier.READ_ONLY,
            READ_ONLY_LABEL,
        )

    def _check_no_delete_command(self, command: str) -> Verdict:
        return self._check_operations(
            command,
            self.config.no_delete_paths,
            NO_DELETE_BLOCKED,
            PolicyTier.NO_DELETE,
            NO_DELETE_LABEL,
        )

    def _check_operations(
        self,
        command: str,
        specs: list[str],
        templates: tuple[OperationTemplate, ...],
        tier: PolicyTier,
        label: str,
    ) -> Verdict:
        for spec in specs:
            match = find_operation(command, spec, templates, self.home)
            if match is not None:
                return Verdict.block(
                    describe_operation(match, label, spec),
                    tier=tier,
                    pattern=spec,
                    operation=match.operation,
                )
        return Verdict.allow()

    # =========================================================================
    # File Paths
    # =========================================================================

    def check_path(
        self,
        path: str,
        mode: AccessMode = AccessMode.FULL_CHECK,
    ) -> Verdict:
        """
        Evaluate a file-tool target path.

        The no-delete tier never applies here: a path alone says nothing
        about whether the tool deletes it.

        Args:
            path: Target path as given by the tool
            mode: FULL_CHECK for write/edit tools, ZERO_ACCESS_ONLY for
                read and enumerate tools

        Returns:
            The first blocking verdict, or an allow verdict
        """
        for spec in self.config.zero_access_paths:
            if matches_path(path, spec, self.home):
                return Verdict.block(
                    f"zero-access path {spec} (no operations allowed)",
                    tier=PolicyTier.ZERO_ACCESS,
                    pattern=spec,
                )

        if mode == AccessMode.ZERO_ACCESS_ONLY:
            return Verdict.allow()

        for spec in self.config.read_only_paths:
            if matches_path(path, spec, self.home):
                return Verdict.block(
                    f"read-only path {spec}",
                    tier=PolicyTier.READ_ONLY,
                    pattern=spec,
                )

        return Verdict.allow()


def evaluate_command(command: str, config: PolicyConfig) -> Verdict:
    """
    Evaluate a shell command against `config`.

    Builds a throwaway PolicyEngine, so every command pattern is compiled
    again on each call. Callers checking more than one command should hold
    a PolicyEngine (or a Guard) and call check_command() on it instead.
    """
    return PolicyEngine(config).check_command(command)


def evaluate_path(
    path: str,
    config: PolicyConfig,
    mode: AccessMode = AccessMode.FULL_CHECK,
) -> Verdict:
    """
    Evaluate a file path against `config`.

    One-shot like evaluate_command(); reuse a PolicyEngine for repeat queries.
    """
    return PolicyEngine(config).check_path(path, mode)

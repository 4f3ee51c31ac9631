"""
Policy matching for damage-control.

This package decides whether a shell command or file path must be blocked.

Key concepts:
    - Path specifier: a literal path (prefix match) or a glob (*, ?, [)
    - Operation template: regex fragment detecting a shell idiom (rm, >, sed -i)
      applied to a protected path
    - PolicyEngine: evaluates the four tiers in fixed order and returns a Verdict
"""

from damage_control.policy.engine import PolicyEngine, evaluate_command, evaluate_path
from damage_control.policy.globs import glob_to_path_regex, glob_to_search_regex, is_glob, match_glob
from damage_control.policy.operations import (
    NO_DELETE_BLOCKED,
    READ_ONLY_BLOCKED,
    OperationMatch,
    find_operation,
)
from damage_control.policy.paths import expand_home, matches_path

__all__ = [
    "NO_DELETE_BLOCKED",
    "READ_ONLY_BLOCKED",
    "OperationMatch",
    "PolicyEngine",
    "evaluate_command",
    "evaluate_path",
    "expand_home",
    "find_operation",
    "glob_to_path_regex",
    "glob_to_search_regex",
    "is_glob",
    "match_glob",
    "matches_path",
]

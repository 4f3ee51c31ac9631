"""
damage-control - policy checks for agent shell and file tools.

Decides whether a shell command or a file path an agent wants to touch must
be blocked, based on a YAML file of command regexes and protected paths:

- bashToolPatterns: dangerous commands (rm -rf, git push --force, ...)
- zeroAccessPaths: no access at all (~/.ssh/, *.pem, ...)
- readOnlyPaths: reads allowed, modifications blocked (/etc/, lock files)
- noDeletePaths: only deletion blocked (LICENSE, .git/)

Example usage:
    $ damage-control check-command "rm -rf /"
    $ damage-control check-path ~/.aws/credentials --mode read
    $ damage-control validate --config patterns.yaml
"""

__version__ = "0.1.0"
__author__ = "damage-control contributors"

from damage_control.config import ConfigLoader
from damage_control.guard import Guard
from damage_control.policy import PolicyEngine, evaluate_command, evaluate_path
from damage_control.schema import AccessMode, PolicyConfig, PolicyTier, Verdict

__all__ = [
    "AccessMode",
    "ConfigLoader",
    "Guard",
    "PolicyConfig",
    "PolicyEngine",
    "PolicyTier",
    "Verdict",
    "__author__",
    "__version__",
    "evaluate_command",
    "evaluate_path",
]

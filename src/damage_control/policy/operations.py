"""
Shell operation templates and detection.

Each template is a regex fragment with a {path} placeholder and the name of
the operation it detects. Substituting a protected path into the placeholder
gives a regex that finds commands performing that operation on that path:

    (r"\\brm\\s+.*{path}", "delete") + "LICENSE"  ->  matches "rm -f LICENSE"

Read-only paths use every template group. No-delete paths use only the
delete group, so `echo x >> LICENSE` is fine for a no-delete LICENSE.
"""

import re
from dataclasses import dataclass

from damage_control.policy.globs import glob_to_search_regex, is_glob
from damage_control.policy.paths import expand_home

PATH_PLACEHOLDER = "{path}"

OperationTemplate = tuple[str, str]

# Operation names surfaced in verdict reasons
OP_WRITE = "write"
OP_APPEND = "append"
OP_EDIT = "edit"
OP_MOVE = "move"
OP_COPY = "copy"
OP_DELETE = "delete"
OP_CHMOD = "chmod"
OP_CHOWN = "chown"
OP_CHGRP = "chgrp"
OP_TRUNCATE = "truncate"

OPERATIONS = (
    OP_WRITE,
    OP_APPEND,
    OP_EDIT,
    OP_MOVE,
    OP_COPY,
    OP_DELETE,
    OP_CHMOD,
    OP_CHOWN,
    OP_CHGRP,
    OP_TRUNCATE,
)


# =============================================================================
# Template Groups
# =============================================================================

WRITE_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r">\s*{path}", OP_WRITE),
    (r"\btee\s+(?!.*-a).*{path}", OP_WRITE),
)

APPEND_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r">>\s*{path}", OP_APPEND),
    (r"\btee\s+-a\s+.*{path}", OP_APPEND),
    (r"\btee\s+.*-a.*{path}", OP_APPEND),
)

EDIT_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r"\bsed\s+-i.*{path}", OP_EDIT),
    (r"\bperl\s+-[^\s]*i.*{path}", OP_EDIT),
    (r"\bawk\s+-i\s+inplace.*{path}", OP_EDIT),
)

MOVE_COPY_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r"\bmv\s+.*\s+{path}", OP_MOVE),
    (r"\bcp\s+.*\s+{path}", OP_COPY),
)

DELETE_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r"\brm\s+.*{path}", OP_DELETE),
    (r"\bunlink\s+.*{path}", OP_DELETE),
    (r"\brmdir\s+.*{path}", OP_DELETE),
    (r"\bshred\s+.*{path}", OP_DELETE),
)

PERMISSION_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r"\bchmod\s+.*{path}", OP_CHMOD),
    (r"\bchown\s+.*{path}", OP_CHOWN),
    (r"\bchgrp\s+.*{path}", OP_CHGRP),
)

TRUNCATE_TEMPLATES: tuple[OperationTemplate, ...] = (
    (r"\btruncate\s+.*{path}", OP_TRUNCATE),
    (r":\s*>\s*{path}", OP_TRUNCATE),
)

# Every modification, for read-only paths
READ_ONLY_BLOCKED: tuple[OperationTemplate, ...] = (
    WRITE_TEMPLATES
    + APPEND_TEMPLATES
    + EDIT_TEMPLATES
    + MOVE_COPY_TEMPLATES
    + DELETE_TEMPLATES
    + PERMISSION_TEMPLATES
    + TRUNCATE_TEMPLATES
)

# Deletion only, for no-delete paths
NO_DELETE_BLOCKED: tuple[OperationTemplate, ...] = DELETE_TEMPLATES


# =============================================================================
# Detection
# =============================================================================


@dataclass(frozen=True)
class OperationMatch:
    """A template that matched a command."""

    operation: str
    template: str


def _search(pattern: str, command: str, flags: int = 0) -> bool:
    try:
        return re.search(pattern, command, flags) is not None
    except re.error:
        return False


def find_operation(
    command: str,
    spec: str,
    templates: tuple[OperationTemplate, ...],
    home: str | None = None,
) -> OperationMatch | None:
    """
    Find the first template in `templates` that `command` performs on `spec`.

    Glob specifiers are turned into a search regex and appended to the
    template's command prefix (the template with {path} removed); templates
    whose prefix is empty are skipped. Glob matching is case-insensitive.

    Literal specifiers are regex-escaped, both as written and with "~"
    expanded, and substituted into {path}. Either form matching counts.

    Args:
        command: Full shell command text
        spec: Path specifier from the config
        templates: Template group to try, in order
        home: Home directory for "~" expansion

    Returns:
        The first matching template, or None (always None for "")
    """
    if not spec:
        return None
    if is_glob(spec):
        search_regex = glob_to_search_regex(spec)
        for template, operation in templates:
            prefix = template.replace(PATH_PLACEHOLDER, "", 1)
            if not prefix:
                continue
            if _search(prefix + search_regex, command, re.IGNORECASE):
                return OperationMatch(operation=operation, template=template)
        return None

    escaped_expanded = re.escape(expand_home(spec, home))
    escaped_original = re.escape(spec)
    for template, operation in templates:
        pattern_expanded = template.replace(PATH_PLACEHOLDER, escaped_expanded, 1)
        pattern_original = template.replace(PATH_PLACEHOLDER, escaped_original, 1)
        if _search(pattern_expanded, command) or _search(pattern_original, command):
            return OperationMatch(operation=operation, template=template)
    return None


def describe_operation(match: OperationMatch, tier_label: str, spec: str) -> str:
    """Format the verdict reason for a detected operation."""
    return f"Blocked: {match.operation} operation on {tier_label} {spec}"

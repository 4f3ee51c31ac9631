"""
Path specifier matching for file-tool queries.

A specifier is either a glob (contains *, ? or [) or a literal. Literals are
prefix matches, so a directory entry like "/etc/" covers the whole subtree,
and "build/" also covers the bare path "build".
"""

from pathlib import Path

from damage_control.policy.globs import is_glob, match_glob


def expand_home(value: str, home: str | None = None) -> str:
    """
    Replace a leading "~" with the home directory.

    Only the first character is considered; "~user" forms are not looked up.

    Args:
        value: Path or specifier, possibly starting with "~"
        home: Home directory to use (defaults to the current user's)
    """
    if not value.startswith("~"):
        return value
    if home is None:
        home = str(Path.home())
    return home + value[1:]


def matches_path(target: str, spec: str, home: str | None = None) -> bool:
    """
    Check whether a concrete path is covered by a path specifier.

    Globs are matched case-insensitively against the basename (using the
    expanded and the raw specifier) and then against the full path. Literals
    match when the path starts with the specifier, or equals it once a
    single trailing "/" is dropped.

    Examples:
        matches_path("/tmp/keys/server.pem", "*.pem")  -> True
        matches_path("/etc/hosts", "/etc/")            -> True
        matches_path("/etc", "/etc/")                  -> True
        matches_path("/etcetera", "/etc/")             -> False

    Args:
        target: The path the tool wants to touch
        spec: Path specifier from the config
        home: Home directory for "~" expansion (defaults to the current user's)

    Returns:
        True if the target is protected by the specifier (never for "")
    """
    if not spec:
        return False
    expanded_spec = expand_home(spec, home)
    normalized = expand_home(target, home)

    if is_glob(spec):
        basename = Path(normalized).name
        if match_glob(basename, expanded_spec) or match_glob(basename, spec):
            return True
        return match_glob(normalized, expanded_spec)

    if normalized.startswith(expanded_spec):
        return True
    if expanded_spec.endswith("/"):
        expanded_spec = expanded_spec[:-1]
    return normalized == expanded_spec

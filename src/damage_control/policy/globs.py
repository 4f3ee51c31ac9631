"""
Glob to regex translation.

Two flavours exist and are deliberately kept apart:

    glob_to_search_regex
        For finding a protected name *inside* a shell command. Unanchored,
        and wildcards never cross whitespace or a path separator, so `*.pem`
        cannot swallow neighbouring arguments.

    glob_to_path_regex / match_glob
        For comparing a whole path (or basename) against a pattern.
        Anchored, case-insensitive, and `*` matches anything.
"""

import re

GLOB_CHARS = ("*", "?", "[")

# Characters escaped by both translators. `*` and `?` are handled separately.
_REGEX_SPECIALS = frozenset(".+^${}()|[]\\")
_PATH_SPECIALS_RE = re.compile(r"[.+^${}()|\[\]\\]")


def is_glob(spec: str) -> bool:
    """Return True if the path specifier contains a wildcard."""
    return any(char in spec for char in GLOB_CHARS)


def glob_to_search_regex(spec: str) -> str:
    """
    Convert a glob into a regex to be searched for in a command string.

    Examples:
        *.pem   ->  [^\\s/]*\\.pem
        id_rs?  ->  id_rs[^\\s/]
    """
    parts = []
    for char in spec:
        if char == "*":
            parts.append(r"[^\s/]*")
        elif char == "?":
            parts.append(r"[^\s/]")
        elif char in _REGEX_SPECIALS:
            parts.append("\\" + char)
        else:
            parts.append(char)
    return "".join(parts)


def glob_to_path_regex(spec: str) -> str:
    """Convert a glob into an anchored regex for whole-string comparison."""
    body = _PATH_SPECIALS_RE.sub(lambda m: "\\" + m.group(0), spec.lower())
    body = body.replace("*", ".*").replace("?", ".")
    return f"^{body}$"


def match_glob(value: str, spec: str) -> bool:
    """Case-insensitive whole-string glob match. Never raises on bad input."""
    try:
        regex = re.compile(glob_to_path_regex(spec), re.IGNORECASE)
    except re.error:
        return False
    return regex.fullmatch(value.lower()) is not None

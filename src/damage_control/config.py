"""
Configuration loading for damage-control.

The patterns file is read once per ConfigLoader and cached. There is no
in-place invalidation: reload() hands back a fresh loader for the same path,
and the next load() on it re-reads the file. Callers holding the old config
keep a consistent snapshot.

Path resolution order:
    1. Explicit path passed by the caller
    2. DAMAGE_CONTROL_CONFIG environment variable
    3. patterns.yaml bundled with the package

A missing file loads as an empty policy, which allows everything.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from damage_control.policy.globs import glob_to_path_regex, glob_to_search_regex, is_glob
from damage_control.schema import InvalidPattern, PolicyConfig, PolicyTier, load_config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DAMAGE_CONTROL_CONFIG"
CONFIG_FILENAME = "patterns.yaml"
EMPTY_PATTERN_ERROR = "empty or non-scalar entry, never matches"


def bundled_config_path() -> Path:
    """Path of the default patterns.yaml shipped inside the package."""
    return Path(__file__).resolve().parent / CONFIG_FILENAME


def resolve_config_path(path: Path | str | None = None) -> Path:
    """
    Work out which patterns file to use.

    Args:
        path: Explicit path, takes precedence when given

    Returns:
        The path to load (it may not exist)
    """
    if path is not None:
        return Path(path).expanduser()

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    return bundled_config_path()


def find_invalid_patterns(config: PolicyConfig) -> list[InvalidPattern]:
    """
    Compile-check every pattern in the config.

    Invalid entries are not removed; the engine skips them at evaluation
    time. This only reports them so they can be logged or shown by
    `damage-control validate`. Empty entries (what the schema leaves for a
    null, list or mapping in the YAML) are reported too.
    """
    invalid: list[InvalidPattern] = []

    for index, entry in enumerate(config.command_patterns):
        if not entry.usable:
            invalid.append(
                InvalidPattern(
                    tier=PolicyTier.COMMAND_PATTERN,
                    index=index,
                    pattern=entry.pattern,
                    error=EMPTY_PATTERN_ERROR,
                )
            )
            continue
        try:
            re.compile(entry.pattern, re.IGNORECASE)
        except re.error as e:
            invalid.append(
                InvalidPattern(
                    tier=PolicyTier.COMMAND_PATTERN,
                    index=index,
                    pattern=entry.pattern,
                    error=str(e),
                )
            )

    path_tiers = (
        (PolicyTier.ZERO_ACCESS, config.zero_access_paths),
        (PolicyTier.READ_ONLY, config.read_only_paths),
        (PolicyTier.NO_DELETE, config.no_delete_paths),
    )
    for tier, specs in path_tiers:
        for index, spec in enumerate(specs):
            if not spec:
                invalid.append(
                    InvalidPattern(tier=tier, index=index, pattern=spec, error=EMPTY_PATTERN_ERROR)
                )
                continue
            if not is_glob(spec):
                continue
            try:
                re.compile(glob_to_search_regex(spec), re.IGNORECASE)
                re.compile(glob_to_path_regex(spec), re.IGNORECASE)
            except re.error as e:
                invalid.append(
                    InvalidPattern(tier=tier, index=index, pattern=spec, error=str(e))
                )

    return invalid


class ConfigLoader:
    """
    Cached handle on a patterns file.

    Usage:
        loader = ConfigLoader()
        config = loader.load()          # reads the file
        config = loader.load()          # cached, same object
        loader = loader.reload()        # new handle, next load() re-reads

    Attributes:
        path: Resolved path of the patterns file
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """
        Initialize the loader. Nothing is read until load() is called.

        Args:
            path: Explicit patterns file; see resolve_config_path()
        """
        self.path = resolve_config_path(path)
        self._config: PolicyConfig | None = None
        self._invalid_patterns: list[InvalidPattern] = []

    @property
    def loaded(self) -> bool:
        """Whether load() has already read the file."""
        return self._config is not None

    @property
    def invalid_patterns(self) -> list[InvalidPattern]:
        """Patterns that failed to compile in the last load."""
        return list(self._invalid_patterns)

    def load(self) -> PolicyConfig:
        """
        Return the configuration, reading the file on first call.

        Raises:
            ConfigParseError: If the file is not valid YAML
            ConfigValidationError: If the YAML doesn't match the schema
        """
        if self._config is not None:
            return self._config

        if not self.path.exists():
            logger.warning("Config not found at %s, no patterns loaded", self.path)
            config = PolicyConfig()
        else:
            config = load_config(self.path)
            logger.debug("Loaded patterns from %s: %s", self.path, config.summary())

        self._invalid_patterns = find_invalid_patterns(config)
        for bad in self._invalid_patterns:
            logger.warning(
                "Skipping invalid %s pattern #%d %r: %s",
                bad.tier.value,
                bad.index,
                bad.pattern,
                bad.error,
            )

        self._config = config
        return config

    def reload(self) -> ConfigLoader:
        """Return a new, unloaded handle for the same file."""
        return ConfigLoader(self.path)

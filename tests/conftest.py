"""
Pytest configuration and fixtures for damage-control tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from damage_control.schema import PolicyConfig, load_config_from_string

FAKE_HOME = "/home/tester"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch) -> str:
    """Point HOME at a fixed directory so "~" expansion is predictable."""
    monkeypatch.setenv("HOME", FAKE_HOME)
    return FAKE_HOME


@pytest.fixture
def sample_patterns_yaml() -> str:
    """Return a small patterns YAML covering all four tiers."""
    return r"""
bashToolPatterns:
  - pattern: '\brm\s+-[^\s]*r'
    reason: rm with recursive flag
  - pattern: '\bgit\s+push\s+.*--force'
    reason: git push --force
  - pattern: '\bgit\s+branch\s+-D\b'
    reason: git branch -D
    ask: true

zeroAccessPaths:
  - ~/.ssh/
  - '*.pem'
  - .env

readOnlyPaths:
  - /etc/
  - '*.lock'

noDeletePaths:
  - LICENSE
  - .git/
"""


@pytest.fixture
def sample_config(sample_patterns_yaml: str) -> PolicyConfig:
    """Parsed version of sample_patterns_yaml."""
    return load_config_from_string(sample_patterns_yaml)


@pytest.fixture
def patterns_file(temp_dir: Path, sample_patterns_yaml: str) -> Path:
    """Write sample_patterns_yaml to disk and return its path."""
    path = temp_dir / "patterns.yaml"
    path.write_text(sample_patterns_yaml)
    return path


@pytest.fixture
def malformed_patterns_yaml() -> str:
    """Patterns YAML where some entries are typos, scalars or nulls."""
    return r"""
bashToolPatterns:
  - pattern: '\bdd\b'
    reason: dd
    note: copied from the wiki
  - pattern: 777
    reason: numeric
  - reason: entry without a pattern

zeroAccessPaths:
  - '*.pem'
  -
  - {path: oops}

readOnlyPaths:
  - 2024
  - /etc/
"""

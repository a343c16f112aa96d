"""Pytest configuration and fixtures for the test suite."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from scout.common.pydantic import SearchLimits
from scout.search.skip_rules import SkipRules


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary workspace for file operations."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir).resolve()


@pytest.fixture
def limits() -> SearchLimits:
    """Default search limits."""
    return SearchLimits()


@pytest.fixture
def skip_rules() -> SkipRules:
    """Essential skip rules only."""
    return SkipRules.from_config([])

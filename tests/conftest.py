"""Pytest configuration and fixtures."""

import pytest

from memdb.core.config import Settings
from memdb.models import Record
from memdb.registry import Registry
from memdb.store import Store


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        environment="development",
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture
def store(settings: Settings) -> Store:
    """Create a private store."""
    return Store(settings)


@pytest.fixture
def registry(settings: Settings) -> Registry:
    """Create an empty registry."""
    return Registry(settings)


@pytest.fixture
def people() -> list[Record]:
    """Sample records without identifiers."""
    return [
        {"name": "ada", "age": 36, "role": "engineer", "tags": ["math", "engines"]},
        {"name": "grace", "age": 45, "role": "admiral", "tags": ["cobol"]},
        {"name": "alan", "age": 41, "role": "engineer", "tags": []},
        {"name": "barbara", "age": 30, "role": "professor"},
    ]

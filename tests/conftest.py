"""Pytest configuration and shared fixtures."""

import pytest

from rolegraph import init
from rolegraph.core.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh SQLite file for each test."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rbac.db'}",
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
async def rbac(settings):
    """An RBAC instance with its schema created."""
    instance = init(settings=settings)
    await instance.create_schema()
    yield instance
    await instance.close()


@pytest.fixture
def store(rbac):
    return rbac.store

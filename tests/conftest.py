"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- A pydantic document type and seeded in-memory backends
- Registry and service fixtures
- An in-memory SQLite session factory for SQL backend tests
"""

import os

# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["ACL_CHECK"] = "true"

from datetime import datetime
from typing import List, Optional

import pytest
from pydantic import Field
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from modelservice.core.config import Settings
from modelservice.core.database import (
    configure_sqlite_engine,
    create_session_factory,
    init_models,
)
from modelservice.models import Base
from modelservice.repositories import MemoryBackend, MemoryDocument
from modelservice.services import ServiceRegistry


class PictureDocument(MemoryDocument):
    """Picture document stored by the in-memory backend in tests."""

    title: str = Field(json_schema_extra={"queryable": True})
    author: Optional[str] = Field(default=None, json_schema_extra={"queryable": True})
    description: Optional[str] = None
    views: int = Field(default=0, ge=0, json_schema_extra={"queryable": True})
    rating: float = Field(default=0.0, json_schema_extra={"queryable": True})
    width: int = Field(default=100, gt=0)
    published: bool = Field(default=False, json_schema_extra={"queryable": True})
    taken_on: Optional[datetime] = Field(default=None, json_schema_extra={"queryable": True})
    tags: List[str] = Field(default_factory=list)


SEED_PICTURES = [
    {"title": "Sunrise", "author": "Alice", "views": 10, "rating": 4.5},
    {"title": "Sunset", "author": "bob", "views": 25, "rating": 3.0},
    {"title": "Mountain", "author": "Alice", "views": 5, "rating": 4.0},
    {"title": "Sea", "author": "Carol", "views": 40, "rating": 2.5},
    {"title": "Forest", "author": None, "views": 0, "rating": 5.0},
]


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the defaults used throughout the tests."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        pagination_default_page=1,
        pagination_default_limit=15,
        acl_check=True,
    )


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Empty in-memory picture backend."""
    return MemoryBackend(PictureDocument)


@pytest.fixture
async def seeded_backend(memory_backend: MemoryBackend) -> MemoryBackend:
    """In-memory picture backend holding SEED_PICTURES with ids 1..5."""
    for data in SEED_PICTURES:
        await memory_backend.save(dict(data))
    return memory_backend


@pytest.fixture
def registry(seeded_backend: MemoryBackend, test_settings: Settings) -> ServiceRegistry:
    """Registry exposing the seeded backend as the ``pictures`` service."""
    registry = ServiceRegistry(test_settings)
    registry.register_backend("pictures", seeded_backend)
    registry.register_service("pictures")
    return registry


@pytest.fixture
def service(registry: ServiceRegistry):
    """Fresh ``pictures`` service over the seeded backend."""
    return registry.get_service("pictures")


@pytest.fixture
async def sql_session_factory():
    """
    Create an in-memory SQLite database and its session factory.

    Yields:
        async_sessionmaker bound to a fresh database with all tables
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_engine(engine)
    await init_models(engine, Base.metadata)

    yield create_session_factory(engine)

    await engine.dispose()

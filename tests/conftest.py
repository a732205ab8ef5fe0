"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- In-memory database engine, session factory and session fixtures
- Seed data helpers
"""

import os

import pytest


# Set test environment variables BEFORE any package imports
# so the global settings instance loads test values
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_JSON"] = "false"


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
async def engine():
    """
    Provide a fresh in-memory SQLite engine with all tables created.

    Disposed after the test so no state leaks between tests.
    """
    from entity_repository.core.database import (
        close_db,
        create_engine_from_settings,
        init_db,
    )
    from tests import models  # noqa: F401 - Import to register models

    engine = create_engine_from_settings("sqlite+aiosqlite:///:memory:")
    await init_db(engine)

    yield engine

    await close_db(engine)


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    from entity_repository.core.database import create_session_factory

    return create_session_factory(engine)


@pytest.fixture
async def async_session(session_factory):
    """
    Provide an async database session for repository tests.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded_books(async_session):
    """
    Insert five books with distinct titles and page counts.

    Returns:
        List of Book instances in insertion order
    """
    from tests.models import Book

    books = [
        Book(title="Cryptonomicon", pages=918),
        Book(title="Anathem", pages=937),
        Book(title="Embassytown", pages=345),
        Book(title="Blindsight", pages=384),
        Book(title="Dune", pages=412),
    ]
    async_session.add_all(books)
    await async_session.commit()
    return books


@pytest.fixture
def restore_root_logging():
    """
    Restore root logger handlers and level changed by setup_logging().
    """
    import logging

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    yield root

    root.handlers = saved_handlers
    root.setLevel(saved_level)

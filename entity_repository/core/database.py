"""
Database configuration and session management.

Provides SQLAlchemy async engine setup, session factories, and an explicit
unit-of-work scope that hands out repositories bound to one session.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Type

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from entity_repository.core.config import settings
from entity_repository.core.logging_config import get_logger
from entity_repository.models.base import Base
from entity_repository.repositories.repository import Repository


logger = get_logger(__name__)


def create_engine_from_settings(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    For SQLite:
    - Uses StaticPool for :memory: URLs so the database survives across sessions
    - Enables check_same_thread=False for async compatibility
    - Turns on foreign key enforcement for every connection

    Args:
        database_url: Overrides settings.database_url when given

    Returns:
        Configured AsyncEngine instance
    """
    url = database_url or settings.database_url
    is_sqlite = url.startswith("sqlite")

    engine_kwargs: dict = {
        "echo": settings.database_echo,
        "connect_args": {"check_same_thread": False} if is_sqlite else {},
    }

    # In-memory databases live and die with their single connection
    if is_sqlite and ":memory:" in url:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build the session factory used for every unit of work.

    Objects are not expired on commit so entities returned by the repository
    stay readable after the commit that stored them.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables registered on Base.metadata.

    Intended for development and tests; production schemas are managed
    outside this package.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema created", extra={"tables": len(Base.metadata.tables)})


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the engine's connection pool at shutdown."""
    await engine.dispose()


class RepositoryScope:
    """
    One unit of work: a single session plus the repositories bound to it.

    Repositories are created lazily and cached per model class, so every
    repository obtained from the same scope shares the same session and
    change tracker.

    Attributes:
        session: The AsyncSession owned by this scope
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._repositories: Dict[type, Repository] = {}

    def repository(self, model: Type) -> Repository:
        """Return the repository for model, creating it on first use."""
        repo = self._repositories.get(model)
        if repo is None:
            repo = Repository(model, self.session)
            self._repositories[model] = repo
        return repo


@asynccontextmanager
async def repository_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[RepositoryScope]:
    """
    Open a unit of work outside FastAPI (scripts, background jobs, tests).

    Example:
        async with repository_scope(session_factory) as scope:
            outcome = await scope.repository(Book).list()

    Note:
        Repository writes commit on their own; the scope only guarantees the
        session is closed when the block exits.
    """
    async with session_factory() as session:
        yield RepositoryScope(session)


class DatabaseHealthCheck:
    """Database connectivity checks."""

    @staticmethod
    async def check_connection(session_factory: async_sessionmaker[AsyncSession]) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            True if a trivial query succeeds, False otherwise
        """
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False

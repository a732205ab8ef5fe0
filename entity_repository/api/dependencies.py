"""
FastAPI dependency functions.

Registers the session factory on an application and exposes per-request
dependencies so any route can ask for a repository of any entity type
without per-entity boilerplate.
"""

from functools import lru_cache
from typing import Annotated, AsyncGenerator, Callable, Type

from fastapi import Depends, FastAPI, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from entity_repository.repositories.repository import Repository


def add_repository_services(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
) -> FastAPI:
    """
    Register repository services on a FastAPI application.

    After this call every request can depend on get_db (one AsyncSession per
    request) and on get_repository(Model) (a Repository bound to that same
    session).

    Args:
        app: Application to configure
        session_factory: Factory producing the concrete AsyncSession type

    Returns:
        The same application, for chaining

    Example:
        app = add_repository_services(FastAPI(), create_session_factory(engine))

        @app.get("/books")
        async def list_books(repo: RepositoryDep(Book)):
            return (await repo.list()).entities
    """
    app.state.session_factory = session_factory
    return app


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get the request-scoped database session.

    Commits when the route returns normally and rolls back when it raises.

    Raises:
        RuntimeError: If add_repository_services() was never called on the app
    """
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError(
            "Repository services are not registered. "
            "Call add_repository_services(app, session_factory) at startup."
        )

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@lru_cache(maxsize=None)
def get_repository(model: Type) -> Callable[[AsyncSession], Repository]:
    """
    Build (once per model) the dependency that provides Repository[model].

    The returned callable is cached, so FastAPI dependency_overrides can
    target it and repeated use within a request resolves consistently.
    """

    def _repository_dependency(
        session: Annotated[AsyncSession, Depends(get_db)],
    ) -> Repository:
        return Repository(model, session)

    _repository_dependency.__name__ = f"get_{model.__name__.lower()}_repository"
    return _repository_dependency


def RepositoryDep(model: Type):  # noqa: N802
    """Annotated alias for route parameters: `repo: RepositoryDep(Book)`."""
    return Annotated[Repository, Depends(get_repository(model))]


# Type alias for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]

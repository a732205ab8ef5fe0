"""
Application factory.

Wires logging, the async engine, the session factory and repository
services into a FastAPI application. Applications mount their own routers
on the returned app and depend on RepositoryDep(Model) in their routes.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from entity_repository.api.dependencies import add_repository_services
from entity_repository.core.config import settings
from entity_repository.core.database import (
    DatabaseHealthCheck,
    close_db,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from entity_repository.core.logging_config import get_logger, setup_logging


logger = get_logger(__name__)


def create_app(
    engine: Optional[AsyncEngine] = None,
    create_schema: bool = False,
) -> FastAPI:
    """
    Build a FastAPI application with repository services registered.

    Args:
        engine: Engine to use; one is created from settings when omitted
        create_schema: Run Base.metadata.create_all at startup (dev/tests)

    Returns:
        Configured FastAPI application
    """
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    owns_engine = engine is None
    engine = engine or create_engine_from_settings()
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_schema:
            await init_db(engine)
        logger.info("Repository services started")
        yield
        if owns_engine:
            await close_db(engine)
        logger.info("Repository services stopped")

    app = FastAPI(title="entity-repository", lifespan=lifespan)
    add_repository_services(app, session_factory)

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        healthy = await DatabaseHealthCheck.check_connection(
            request.app.state.session_factory
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "ok" if healthy else "unavailable", "database": healthy},
        )

    return app

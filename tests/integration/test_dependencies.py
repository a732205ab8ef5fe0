"""
Integration tests for FastAPI repository registration.

Builds a small application on top of add_repository_services() and
exercises it through httpx with an ASGI transport.
"""

from typing import Optional

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from entity_repository.api.dependencies import (
    DatabaseSession,
    RepositoryDep,
    add_repository_services,
    get_repository,
)
from entity_repository.api.errors import raise_for_result
from entity_repository.api.pagination import Pagination
from entity_repository.main import create_app
from entity_repository.repositories.repository import Repository
from tests.models import Author, Book


class BookIn(BaseModel):
    title: str
    pages: int = 0


class BookUpdate(BaseModel):
    version: int
    title: Optional[str] = None
    pages: Optional[int] = None


class AuthorIn(BaseModel):
    name: str


def build_app(session_factory) -> FastAPI:
    app = add_repository_services(FastAPI(), session_factory)

    @app.post("/books", status_code=201)
    async def create_book(payload: BookIn, repo: RepositoryDep(Book)):
        outcome = await repo.create(Book(**payload.model_dump()))
        return raise_for_result(outcome).entity.to_dict()

    @app.get("/books")
    async def list_books(pagination: Pagination, repo: RepositoryDep(Book)):
        outcome = await repo.list(
            order_by=lambda q: q.order_by(Book.title),
            page=pagination.page,
            page_size=pagination.page_size,
        )
        return [book.to_dict() for book in raise_for_result(outcome).entities]

    @app.get("/books/count")
    async def count_books(repo: RepositoryDep(Book)):
        return {"count": raise_for_result(await repo.count()).count}

    @app.get("/books/{book_id}")
    async def get_book(book_id: str, repo: RepositoryDep(Book)):
        outcome = await repo.find(Book.id == book_id)
        return raise_for_result(outcome, "Book not found").entity.to_dict()

    @app.put("/books/{book_id}")
    async def update_book(book_id: str, payload: BookUpdate, repo: RepositoryDep(Book)):
        changes = payload.model_dump(exclude_none=True)
        outcome = await repo.update(Book(id=book_id, **changes))
        return raise_for_result(outcome).entity.to_dict()

    @app.post("/authors", status_code=201)
    async def create_author(payload: AuthorIn, repo: RepositoryDep(Author)):
        outcome = await repo.create(Author(name=payload.name))
        return raise_for_result(outcome).entity.to_dict()

    @app.get("/session-sharing")
    async def session_sharing(
        books: RepositoryDep(Book),
        authors: RepositoryDep(Author),
        session: DatabaseSession,
    ):
        return {
            "shared": books.session is authors.session is session,
        }

    return app


@pytest.fixture
async def client(session_factory):
    app = build_app(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestRepositoryDependencies:
    """Repositories resolved per request through dependency injection."""

    @pytest.mark.anyio
    async def test_create_and_get(self, client: AsyncClient):
        """
        Arrange: Running app with repository services
        Act: POST a book, then GET it by id
        Assert: Same data comes back
        """
        # Act
        created = await client.post("/books", json={"title": "Dune", "pages": 412})
        fetched = await client.get(f"/books/{created.json()['id']}")

        # Assert
        assert created.status_code == 201
        assert created.json()["version"] == 1
        assert fetched.status_code == 200
        assert fetched.json() == created.json()

    @pytest.mark.anyio
    async def test_missing_entity_is_404(self, client: AsyncClient):
        response = await client.get("/books/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["detail"] == "Book not found"

    @pytest.mark.anyio
    async def test_duplicate_unique_value_is_409(self, client: AsyncClient):
        first = await client.post("/authors", json={"name": "Peter Watts"})
        second = await client.post("/authors", json={"name": "Peter Watts"})

        assert first.status_code == 201
        assert second.status_code == 409
        assert "UNIQUE" in second.json()["detail"]

    @pytest.mark.anyio
    async def test_update_and_stale_update(self, client: AsyncClient):
        """
        Arrange: Stored book at version 1
        Act: Update with version 1, then again with version 1
        Assert: First succeeds (version 2), second conflicts with 409
        """
        # Arrange
        book = (await client.post("/books", json={"title": "Matter", "pages": 593})).json()

        # Act
        updated = await client.put(f"/books/{book['id']}", json={"version": 1, "pages": 600})
        stale = await client.put(f"/books/{book['id']}", json={"version": 1, "title": "Old"})

        # Assert
        assert updated.status_code == 200
        assert updated.json()["version"] == 2
        assert updated.json()["pages"] == 600
        assert updated.json()["title"] == "Matter"
        assert stale.status_code == 409
        assert (await client.get(f"/books/{book['id']}")).json()["title"] == "Matter"

    @pytest.mark.anyio
    async def test_update_of_unknown_book_is_404(self, client: AsyncClient):
        unknown = "00000000-0000-0000-0000-000000000000"

        response = await client.put(f"/books/{unknown}", json={"version": 1, "title": "Ghost"})

        assert response.status_code == 404
        assert (await client.get(f"/books/{unknown}")).status_code == 404
        assert (await client.get("/books/count")).json() == {"count": 0}

    @pytest.mark.anyio
    async def test_pagination_query_parameters(self, client: AsyncClient):
        for title in ["Excession", "Anathem", "Dune", "Blindsight", "Consider Phlebas"]:
            await client.post("/books", json={"title": title})

        first = await client.get("/books", params={"page": 1, "page_size": 2})
        second = await client.get("/books", params={"page": 2, "page_size": 2})
        everything = await client.get("/books")
        count = await client.get("/books/count")

        assert [b["title"] for b in first.json()] == ["Anathem", "Blindsight"]
        assert [b["title"] for b in second.json()] == ["Consider Phlebas", "Dune"]
        assert len(everything.json()) == count.json()["count"] == 5

    @pytest.mark.anyio
    async def test_page_size_above_maximum_is_rejected(self, client: AsyncClient):
        response = await client.get("/books", params={"page": 1, "page_size": 100000})

        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_repositories_share_request_session(self, client: AsyncClient):
        response = await client.get("/session-sharing")

        assert response.json() == {"shared": True}


class TestRegistration:
    """add_repository_services() and get_repository() wiring."""

    def test_get_repository_is_cached_per_model(self):
        assert get_repository(Book) is get_repository(Book)
        assert get_repository(Book) is not get_repository(Author)

    @pytest.mark.anyio
    async def test_dependency_builds_repository_for_model(self, async_session):
        repo = get_repository(Author)(async_session)

        assert isinstance(repo, Repository)
        assert repo.model is Author
        assert repo.session is async_session

    @pytest.mark.anyio
    async def test_unregistered_app_fails_loudly(self):
        app = FastAPI()

        @app.get("/books")
        async def list_books(repo: RepositoryDep(Book)):
            return []

        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as client:
            response = await client.get("/books")

        assert response.status_code == 500


class TestCreateApp:
    """Application factory."""

    @pytest.mark.anyio
    async def test_health_endpoint(self, engine, restore_root_logging):
        app = create_app(engine=engine)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": True}

    @pytest.mark.anyio
    async def test_registers_session_factory(self, engine, restore_root_logging):
        app = create_app(engine=engine)

        assert app.state.session_factory.kw["bind"] is engine

"""
Base models and mixins for SQLAlchemy ORM.

Every entity handled by the repository can inherit EntityBase to get a
generated UUID primary key and an optimistic-concurrency version token.
"""

from typing import Any
import uuid

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for all ORM models
Base = declarative_base()


class UUIDMixin:
    """
    Mixin that adds a UUID primary key column.

    UUIDs are stored as TEXT so the same schema works on SQLite and PostgreSQL.
    The value is generated at flush time when the caller leaves it unset.
    """

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="UUID primary key"
    )


class VersionMixin:
    """
    Mixin that adds an optimistic-concurrency token.

    The column is registered as the mapper's version_id_col, so SQLAlchemy
    increments it on every UPDATE and raises StaleDataError when the row was
    changed by someone else since it was loaded.
    """

    version = Column(
        Integer,
        nullable=False,
        doc="Row version, incremented on every update"
    )

    __mapper_args__ = {"version_id_col": version}


class EntityBase(UUIDMixin, VersionMixin):
    """
    Minimal structural contract for persisted entities.

    Attributes:
        id: UUID primary key (generated)
        version: Optimistic-concurrency token (managed by SQLAlchemy)
    """

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Only includes columns, not relationships.
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, version={self.version!r})"

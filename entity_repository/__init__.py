"""
Generic async repository over SQLAlchemy.

Exports the repository contract and implementation, the result envelope and
the error type.
"""

from entity_repository.core.exceptions import RepositoryException
from entity_repository.repositories import IRepository, Repository
from entity_repository.results import (
    CountPayload,
    EntityListPayload,
    EntityPayload,
    RepositoryResult,
)

__all__ = [
    "IRepository",
    "Repository",
    "RepositoryException",
    "RepositoryResult",
    "EntityPayload",
    "EntityListPayload",
    "CountPayload",
]

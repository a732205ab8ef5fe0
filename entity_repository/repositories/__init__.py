"""
Repository layer for data access.

Provides a generic repository over SQLAlchemy async sessions, isolating
database access from business logic.
"""

from entity_repository.repositories.interfaces import IRepository
from entity_repository.repositories.repository import Repository, page_offset

__all__ = [
    "IRepository",
    "Repository",
    "page_offset",
]

"""
SQLAlchemy ORM base classes.

Application models inherit from Base and EntityBase; importing them before
init_db() registers their tables with Base.metadata.
"""

from entity_repository.models.base import Base, EntityBase, UUIDMixin, VersionMixin

__all__ = [
    "Base",
    "EntityBase",
    "UUIDMixin",
    "VersionMixin",
]

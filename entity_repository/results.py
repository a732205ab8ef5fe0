"""
Result envelope returned by every repository operation.

A RepositoryResult carries either a payload or a RepositoryException, never
both. The payload is a tagged union over the shapes an operation can produce:

- EntityPayload: a single entity (or None when nothing matched)
- EntityListPayload: a list of entities
- CountPayload: an integer count
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar, Union

from entity_repository.core.exceptions import RepositoryException


TEntity = TypeVar("TEntity")


@dataclass(frozen=True)
class EntityPayload(Generic[TEntity]):
    """Single entity produced by create, find and update."""
    entity: Optional[TEntity]


@dataclass(frozen=True)
class EntityListPayload(Generic[TEntity]):
    """Entity sequence produced by list."""
    entities: List[TEntity] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entities)


@dataclass(frozen=True)
class CountPayload:
    """Row count produced by count and save_changes."""
    count: int


Payload = Union[EntityPayload[TEntity], EntityListPayload[TEntity], CountPayload]


@dataclass(frozen=True)
class RepositoryResult(Generic[TEntity]):
    """
    Success-or-error wrapper for repository operations.

    Callers must check `succeeded` (or `error`) before trusting `result`.

    Attributes:
        result: Operation payload, None when the operation failed
        error: Wrapped failure, None when the operation succeeded

    Example:
        >>> outcome = await repo.find(User.email == "a@example.com")
        >>> if outcome.succeeded:
        ...     user = outcome.entity
    """

    result: Optional[Payload] = None
    error: Optional[RepositoryException] = None

    @classmethod
    def success(cls, payload: Payload) -> "RepositoryResult[TEntity]":
        return cls(result=payload, error=None)

    @classmethod
    def failure(cls, error: RepositoryException) -> "RepositoryResult[TEntity]":
        return cls(result=None, error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def entity(self) -> Optional[TEntity]:
        """Single-entity payload; raises TypeError for other payload shapes."""
        if not isinstance(self.result, EntityPayload):
            raise TypeError(f"Result does not hold a single entity: {self.result!r}")
        return self.result.entity

    @property
    def entities(self) -> List[TEntity]:
        """Entity-list payload; raises TypeError for other payload shapes."""
        if not isinstance(self.result, EntityListPayload):
            raise TypeError(f"Result does not hold an entity list: {self.result!r}")
        return self.result.entities

    @property
    def count(self) -> int:
        """Count payload; raises TypeError for other payload shapes."""
        if not isinstance(self.result, CountPayload):
            raise TypeError(f"Result does not hold a count: {self.result!r}")
        return self.result.count

    def unwrap(self) -> Payload:
        """
        Return the payload or raise the stored error.

        Raises:
            RepositoryException: If the operation failed
        """
        if self.error is not None:
            raise self.error
        return self.result

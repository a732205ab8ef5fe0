"""
Repository Interface (IRepository)

Abstract base class defining the CRUD contract for any mapped entity type.

Implementation guide:
- All methods must be async
- No method may raise on operation failure; failures are returned
  inside the RepositoryResult
- One instance is bound to exactly one session
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement

from entity_repository.results import RepositoryResult


TEntity = TypeVar("TEntity")

# A boolean clause (User.age > 3) or a callable building one from the model class
FilterClause = Union[ColumnElement[bool], Callable[[Any], ColumnElement[bool]]]

# Callables receiving the statement built so far and returning a refined one
OrderBy = Callable[[Select], Select]
IncludeRelated = Callable[[Select], Select]


class IRepository(ABC, Generic[TEntity]):
    """
    Generic repository contract for a TEntity table.

    Covers count, create, find, list, update and explicit save of pending
    tracked changes. Every operation returns a RepositoryResult.
    """

    @abstractmethod
    async def count(
        self,
        filter: Optional[FilterClause] = None,
        allow_no_tracking: bool = False
    ) -> RepositoryResult[TEntity]:
        """
        Count TEntity rows.

        Args:
            filter: Optional predicate; all rows are counted when omitted
            allow_no_tracking: Accepted for parity with list(); counting
                never loads entities into the session

        Returns:
            RepositoryResult holding a CountPayload
        """

    @abstractmethod
    async def create(self, entity: TEntity) -> RepositoryResult[TEntity]:
        """
        Insert a new TEntity and commit immediately.

        Returns:
            RepositoryResult holding an EntityPayload with the stored entity
            (generated id and version populated)
        """

    @abstractmethod
    async def find(
        self,
        filter: Optional[FilterClause] = None
    ) -> RepositoryResult[TEntity]:
        """
        Get the first TEntity matching filter.

        Returns:
            RepositoryResult holding an EntityPayload; its entity is None
            when no row matches
        """

    @abstractmethod
    async def list(
        self,
        filter: Optional[FilterClause] = None,
        order_by: Optional[OrderBy] = None,
        include_related_entity: Optional[IncludeRelated] = None,
        allow_no_tracking: bool = False,
        page: Optional[int] = None,
        page_size: Optional[int] = None
    ) -> RepositoryResult[TEntity]:
        """
        Get a list of TEntity.

        Args:
            filter: Optional predicate
            order_by: Callable applying ORDER BY to the statement
            include_related_entity: Callable adding loader options for
                related entities (e.g. selectinload)
            allow_no_tracking: Detach newly loaded entities so later changes
                on them are not picked up by save_changes()
            page: 1-based page number (0 is treated as 1)
            page_size: Rows per page; pagination applies only when both
                page and page_size are given

        Returns:
            RepositoryResult holding an EntityListPayload
        """

    @abstractmethod
    async def update(self, entity: TEntity) -> RepositoryResult[TEntity]:
        """
        Mark entity as modified and commit immediately.

        Returns:
            RepositoryResult holding an EntityPayload with the session-bound
            instance
        """

    @abstractmethod
    async def save_changes(self) -> RepositoryResult[TEntity]:
        """
        Flush and commit pending tracked changes.

        Returns:
            RepositoryResult holding a CountPayload with the number of
            inserted, modified and deleted entities (0 when nothing is pending)
        """

"""
Generic SQLAlchemy repository.

Binds IRepository to an AsyncSession and a mapped model class. Each operation
builds a statement from the caller's predicates, executes it, and returns a
RepositoryResult; failures come back as a populated error instead of raising.
"""

from typing import Optional, Type

from sqlalchemy import Select, event, func, inspect, select
from sqlalchemy.exc import DBAPIError, NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ClauseElement

from entity_repository.core.exceptions import RepositoryException
from entity_repository.core.logging_config import get_logger, log_with_context
from entity_repository.repositories.interfaces import (
    FilterClause,
    IncludeRelated,
    IRepository,
    OrderBy,
    TEntity,
)
from entity_repository.results import (
    CountPayload,
    EntityListPayload,
    EntityPayload,
    RepositoryResult,
)


logger = get_logger(__name__)

# Session.info key holding rows written since the last commit or rollback
WRITES_KEY = "entity_repository.writes"


def page_offset(page: int, page_size: int) -> int:
    """
    Row offset for a 1-based page number.

    Page 0 is treated the same as page 1.

    Raises:
        ValueError: If page is negative or page_size is not positive
    """
    if page < 0:
        raise ValueError(f"page must be >= 0, got {page}")
    if page_size <= 0:
        raise ValueError(f"page_size must be > 0, got {page_size}")
    return 0 if page == 0 else (page - 1) * page_size


def _pending_writes(session) -> int:
    return (
        len(session.new)
        + len(session.deleted)
        + sum(1 for obj in session.dirty if session.is_modified(obj))
    )


def track_writes(session: AsyncSession) -> None:
    """
    Count rows written by every flush of session until it commits or rolls back.

    Autoflush can send pending objects to the database before save_changes()
    runs, so the count is kept at flush time rather than read from
    session.new/dirty/deleted at commit. Installing twice is a no-op.
    """
    sync_session = session.sync_session
    if WRITES_KEY in sync_session.info:
        return
    sync_session.info[WRITES_KEY] = 0

    def _count(sess, flush_context, instances):
        sess.info[WRITES_KEY] += _pending_writes(sess)

    def _reset(sess, *args):
        sess.info[WRITES_KEY] = 0

    event.listen(sync_session, "before_flush", _count)
    event.listen(sync_session, "after_commit", _reset)
    event.listen(sync_session, "after_rollback", _reset)


class Repository(IRepository[TEntity]):
    """
    Repository for any mapped TEntity.

    Attributes:
        model: Mapped class whose table is queried
        session: SQLAlchemy async session used for every operation

    Example:
        >>> repo = Repository(Book, session)
        >>> outcome = await repo.list(
        ...     filter=Book.pages > 100,
        ...     order_by=lambda q: q.order_by(Book.title),
        ...     page=1,
        ...     page_size=20,
        ... )
        >>> books = outcome.entities if outcome.succeeded else []

    Note:
        Not safe for concurrent use. Await operations one at a time, the
        same way the underlying session requires.
    """

    def __init__(self, model: Type[TEntity], session: AsyncSession):
        """
        Initialize repository with model class and database session.

        Raises:
            RepositoryException: If session is None
        """
        if session is None:
            raise RepositoryException(
                "Missing session",
                ValueError("session must not be None"),
            )
        self.model = model
        self.session = session
        track_writes(session)

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    async def count(
        self,
        filter: Optional[FilterClause] = None,
        allow_no_tracking: bool = False
    ) -> RepositoryResult[TEntity]:
        try:
            stmt = self._apply_filter(
                select(func.count()).select_from(self.model), filter
            )
            data = await self.session.scalar(stmt)
            return RepositoryResult.success(CountPayload(int(data or 0)))
        except Exception as exc:
            await self._rollback_if_database_error("count", exc)
            return self._failure("count", exc)

    async def create(self, entity: TEntity) -> RepositoryResult[TEntity]:
        try:
            self.session.add(entity)
            await self.session.commit()
            await self.session.refresh(entity)
        except Exception as exc:
            await self._rollback("create")
            return self._failure("create", exc)

        log_with_context(
            logger, "debug", "Entity created",
            entity=self.entity_name, operation="create",
        )
        return RepositoryResult.success(EntityPayload(entity))

    async def find(
        self,
        filter: Optional[FilterClause] = None
    ) -> RepositoryResult[TEntity]:
        try:
            stmt = self._apply_filter(select(self.model), filter).limit(1)
            result = await self.session.execute(stmt)
            data = result.scalars().first()
            return RepositoryResult.success(EntityPayload(data))
        except Exception as exc:
            await self._rollback_if_database_error("find", exc)
            return self._failure("find", exc)

    async def list(
        self,
        filter: Optional[FilterClause] = None,
        order_by: Optional[OrderBy] = None,
        include_related_entity: Optional[IncludeRelated] = None,
        allow_no_tracking: bool = False,
        page: Optional[int] = None,
        page_size: Optional[int] = None
    ) -> RepositoryResult[TEntity]:
        try:
            stmt = self._apply_filter(select(self.model), filter)

            if include_related_entity is not None:
                stmt = include_related_entity(stmt)

            if order_by is not None:
                stmt = order_by(stmt)

            if page is not None and page_size is not None:
                stmt = stmt.offset(page_offset(page, page_size)).limit(page_size)

            tracked_before = (
                set(self.session.identity_map.keys()) if allow_no_tracking else None
            )

            result = await self.session.execute(stmt)
            data = list(result.scalars().unique().all())

            if tracked_before is not None:
                self._detach_new(data, tracked_before)

            return RepositoryResult.success(EntityListPayload(data))
        except Exception as exc:
            await self._rollback_if_database_error("list", exc)
            return self._failure("list", exc)

    async def update(self, entity: TEntity) -> RepositoryResult[TEntity]:
        try:
            merged = await self.session.merge(entity)
            if inspect(merged).pending:
                # merge() found no stored row and built a new one
                self.session.expunge(merged)
                raise NoResultFound(f"No stored {self.entity_name} matches the given identity")
            await self.session.commit()
        except Exception as exc:
            await self._rollback("update")
            return self._failure("update", exc)

        log_with_context(
            logger, "debug", "Entity updated",
            entity=self.entity_name, operation="update",
        )
        return RepositoryResult.success(EntityPayload(merged))

    async def save_changes(self) -> RepositoryResult[TEntity]:
        try:
            # Writes already sent by autoflush are counted by the flush listener
            await self.session.flush()
            affected = self.session.sync_session.info[WRITES_KEY]
            await self.session.commit()
        except Exception as exc:
            await self._rollback("save_changes")
            return self._failure("save_changes", exc)

        log_with_context(
            logger, "debug", "Pending changes saved",
            entity=self.entity_name, operation="save_changes", affected=affected,
        )
        return RepositoryResult.success(CountPayload(affected))

    def _apply_filter(self, stmt: Select, filter: Optional[FilterClause]) -> Select:
        if filter is None:
            return stmt
        clause = filter if isinstance(filter, ClauseElement) else filter(self.model)
        return stmt.where(clause)

    def _detach_new(self, entities, tracked_before: set) -> None:
        # Instances the session already tracked stay attached
        for entity in entities:
            if inspect(entity).identity_key not in tracked_before:
                self.session.expunge(entity)

    async def _rollback(self, operation: str) -> None:
        # A failed flush leaves the session unusable until rolled back
        try:
            await self.session.rollback()
        except SQLAlchemyError as exc:
            log_with_context(
                logger, "error", "Rollback after failed operation also failed",
                entity=self.entity_name, operation=operation, error=str(exc),
            )

    async def _rollback_if_database_error(self, operation: str, exc: Exception) -> None:
        # Some backends (PostgreSQL) abort the transaction on a failed statement
        if isinstance(exc, DBAPIError):
            await self._rollback(operation)

    def _failure(self, operation: str, exc: Exception) -> RepositoryResult[TEntity]:
        log_with_context(
            logger, "warning", "Repository operation failed",
            entity=self.entity_name,
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return RepositoryResult.failure(RepositoryException(str(exc), exc))

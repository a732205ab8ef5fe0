"""
Repository exception types.

Wraps lower-level SQLAlchemy or driver exceptions so callers get a stable,
domain-friendly error regardless of what failed underneath.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm.exc import StaleDataError


class RepositoryException(Exception):
    """
    Raised (or returned inside a RepositoryResult) when a repository operation fails.

    Attributes:
        message: Human-readable description, usually the original error message
        inner_exception: The underlying exception that caused the failure
    """

    def __init__(self, message: str, inner_exception: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.inner_exception = inner_exception
        if inner_exception is not None:
            self.__cause__ = inner_exception

    @property
    def is_concurrency_conflict(self) -> bool:
        """True when the optimistic-concurrency token did not match."""
        return isinstance(self.inner_exception, StaleDataError)

    @property
    def is_not_found(self) -> bool:
        """True when the row an update targeted does not exist."""
        return isinstance(self.inner_exception, NoResultFound)

    @property
    def is_integrity_error(self) -> bool:
        """True when a database constraint was violated."""
        return isinstance(self.inner_exception, IntegrityError)

    def __repr__(self) -> str:
        inner = type(self.inner_exception).__name__ if self.inner_exception else None
        return f"RepositoryException(message={self.message!r}, inner={inner})"

"""
Result Pattern for repository operations
Carries either the value of an operation or the classified failure
"""

from typing import TypeVar, Generic, Optional, Any, Dict, Callable
from dataclasses import dataclass

from .exceptions import ErrorKind, RepositoryError

T = TypeVar('T')


@dataclass
class RepositoryResult(Generic[T]):
    """
    Outcome of a repository operation.

    Examples:
        result = repo.attempt(repo.find_by_id, 42)
        if result.is_success:
            print(result.data)
        elif result.error_kind is ErrorKind.NOT_FOUND:
            ...
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> 'RepositoryResult[T]':
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def failure(cls,
                error: str,
                kind: ErrorKind = ErrorKind.STORE_ERROR,
                metadata: Optional[Dict[str, Any]] = None) -> 'RepositoryResult[T]':
        """Create a failure result."""
        return cls(success=False, error=error, error_kind=kind, metadata=metadata)

    @classmethod
    def from_error(cls, error: RepositoryError) -> 'RepositoryResult[T]':
        """Build a failure result from a classified repository error."""
        return cls.failure(error.message, kind=error.kind, metadata=error.details or None)

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    @property
    def is_not_found(self) -> bool:
        """True only for lookups that matched nothing."""
        return self.error_kind is ErrorKind.NOT_FOUND

    def unwrap(self) -> T:
        """
        Get the data from a successful result.

        Raises:
            ValueError: If called on a failure result
        """
        if self.is_failure:
            raise ValueError(f"Cannot unwrap a failure result: {self.error}")
        return self.data

    def unwrap_or(self, default: T) -> T:
        return self.data if self.is_success else default

    def map(self, func: Callable[[T], Any]) -> 'RepositoryResult':
        """Transform the data if successful, otherwise pass the failure through."""
        if self.is_success:
            return RepositoryResult.ok(func(self.data), self.metadata)
        return self

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if self.is_success:
            return f"RepositoryResult.ok(data={self.data!r})"
        kind = self.error_kind.value if self.error_kind else None
        return f"RepositoryResult.failure(error={self.error!r}, kind={kind!r})"

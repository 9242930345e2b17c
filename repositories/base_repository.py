"""
Base Repository - generic data access for one persisted entity type
Implements CRUD plus soft-delete/restore/trash operations over a StoragePort
"""

import sys
import traceback
from typing import TypeVar, Generic, List, Optional, Dict, Any, Sequence, Type, Callable

from sqlalchemy.orm import Session

from logging_config import get_logger
from .exceptions import RepositoryError, StoreError
from .result import RepositoryResult
from .storage import ALL_COLUMNS, SQLAlchemyStorage, StoragePort, TrashedScope

# Type variable for model classes
T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Generic repository bound to a single entity type.

    Every public operation catches its own failures. A failure is classified
    (see repositories.exceptions), logged exactly once, remembered as
    ``last_error`` and turned into an empty result: ``None`` for single
    entities, ``[]`` for sequences, ``False`` for boolean operations.

    Two constructor flags change that:

    * ``diagnostic_mode`` dumps the traceback with locals to stderr and
      re-raises before anything is logged. Meant for local development only.
    * ``raise_errors`` logs the failure and then re-raises it instead of
      returning the empty result.

    Subclass once per entity and add entity-specific queries there:

        class PostRepository(BaseRepository[Post]):
            def published(self):
                return self.query().filter(Post.published.is_(True)).all()

        repo = PostRepository.for_model(db.session, Post)
    """

    def __init__(self,
                 storage: StoragePort,
                 diagnostic_mode: bool = False,
                 raise_errors: bool = False):
        """
        Args:
            storage: Backing store for the entity type
            diagnostic_mode: Dump and halt on failure instead of logging
            raise_errors: Re-raise classified failures after logging them
        """
        self.storage = storage
        self.diagnostic_mode = diagnostic_mode
        self.raise_errors = raise_errors
        self.last_error: Optional[RepositoryError] = None
        self.logger = get_logger(type(self).__module__)

    @classmethod
    def for_model(cls, session: Session, model_class: Type[T], **flags) -> 'BaseRepository[T]':
        """Build a repository over a SQLAlchemy session and mapped model class."""
        return cls(SQLAlchemyStorage(session, model_class), **flags)

    @property
    def model_name(self) -> str:
        return self.storage.model_name

    # Error handling

    def log_error(self, error: RepositoryError, operation: str, dump: bool = True) -> None:
        """
        Single sink for failed operations.

        In diagnostic mode (and with ``dump`` left on) the error is dumped and
        re-raised here, so no log entry is written for it.
        """
        if self.diagnostic_mode and dump:
            self._dump(error, operation)
            raise error

        self.logger.error(
            "repository_operation_failed",
            operation=operation,
            model=self.model_name,
            error_kind=error.kind.value,
            error=error.message,
            details=error.details,
        )

    def _dump(self, error: RepositoryError, operation: str) -> None:
        cause = error.__cause__ or error
        report = traceback.TracebackException.from_exception(cause, capture_locals=True)
        sys.stderr.write(
            f"Repository failure in {type(self).__name__}.{operation} "
            f"({self.model_name}, {error.kind.value}): {error.message}\n"
        )
        sys.stderr.write(''.join(report.format()))
        sys.stderr.flush()

    def _guard(self, operation: str, work: Callable[[], Any], sentinel: Any) -> Any:
        """Run one operation, converting any failure into the sentinel."""
        self.last_error = None
        try:
            return work()
        except RepositoryError as e:
            error = e
        except Exception as e:
            error = StoreError(f"Unexpected error during {operation} on {self.model_name}: {e}")
            error.__cause__ = e

        self.last_error = error
        self.log_error(error, operation)
        if self.raise_errors:
            raise error
        return sentinel

    def attempt(self, operation: Callable[..., Any], *args, **kwargs) -> RepositoryResult:
        """
        Run one of this repository's operations and report the outcome as a
        RepositoryResult, so callers can tell "not found" apart from a store
        failure without enabling ``raise_errors``.
        """
        try:
            value = operation(*args, **kwargs)
        except RepositoryError as e:
            return RepositoryResult.from_error(e)
        if self.last_error is not None:
            return RepositoryResult.from_error(self.last_error)
        return RepositoryResult.ok(value)

    # Query builder

    def query(self):
        """The store's native query builder with the default soft-delete scope."""
        return self._guard('query', lambda: self.storage.query(TrashedScope.WITHOUT), None)

    # READ Operations

    def all(self, columns: Sequence[str] = ALL_COLUMNS, relations: Sequence[str] = ()) -> List[T]:
        """
        Get every non-deleted entity in insertion order.

        Args:
            columns: Column names to load (default: all). Instances already
                loaded in the session keep their loaded columns
            relations: Relations to eager load, dotted paths allowed

        Returns:
            List of entities, empty on failure
        """
        return self._guard(
            'all',
            lambda: self.storage.fetch_all(columns, relations, TrashedScope.WITHOUT),
            []
        )

    def all_trashed(self) -> List[T]:
        """Get every soft-deleted entity."""
        return self._guard(
            'all_trashed',
            lambda: self.storage.fetch_all(scope=TrashedScope.ONLY),
            []
        )

    def find_by_id(self,
                   entity_id: Any,
                   columns: Sequence[str] = ALL_COLUMNS,
                   relations: Sequence[str] = (),
                   appends: Sequence[str] = ()) -> Optional[T]:
        """
        Find a non-deleted entity by primary key.

        Args:
            entity_id: Primary key value
            columns: Column names to load (default: all). An instance already
                loaded in the session keeps its loaded columns
            relations: Relations to eager load
            appends: Computed attributes to append; replaces any set by an
                earlier lookup

        Returns:
            Entity instance or None
        """
        return self._guard(
            'find_by_id',
            lambda: self._find(entity_id, columns, relations, appends),
            None
        )

    def find_trashed_by_id(self, entity_id: Any) -> Optional[T]:
        """Find an entity by primary key whether or not it is soft-deleted."""
        return self._guard(
            'find_trashed_by_id',
            lambda: self.storage.fetch_by_id(entity_id, scope=TrashedScope.WITH),
            None
        )

    def find_only_trashed_by_id(self, entity_id: Any) -> Optional[T]:
        """Find a soft-deleted entity by primary key."""
        return self._guard(
            'find_only_trashed_by_id',
            lambda: self.storage.fetch_by_id(entity_id, scope=TrashedScope.ONLY),
            None
        )

    # CREATE Operations

    def create(self, payload: Dict[str, Any]) -> Optional[T]:
        """
        Create an entity and return it re-read from the store, so database
        defaults are populated.
        """
        def _create():
            entity = self.storage.insert(payload)
            return self.storage.refresh(entity)

        return self._guard('create', _create, None)

    # UPDATE Operations

    def update(self, entity_id: Any, payload: Dict[str, Any]) -> bool:
        """Apply payload fields to a non-deleted entity."""
        return self._guard(
            'update',
            lambda: self.storage.update(self._find(entity_id), payload),
            False
        )

    # DELETE Operations

    def delete_by_id(self, entity_id: Any) -> bool:
        """Soft-delete a non-deleted entity (hard delete if the model has no soft deletes)."""
        return self._guard(
            'delete_by_id',
            lambda: self.storage.soft_delete(self._find(entity_id)),
            False
        )

    def restore_by_id(self, entity_id: Any) -> bool:
        """Clear the soft-delete marker of a trashed entity."""
        return self._guard(
            'restore_by_id',
            lambda: self.storage.restore(
                self.storage.fetch_by_id(entity_id, scope=TrashedScope.ONLY)
            ),
            False
        )

    def permanently_delete_by_id(self, entity_id: Any) -> bool:
        """Remove an entity for good, trashed or not."""
        return self._guard(
            'permanently_delete_by_id',
            lambda: self.storage.hard_delete(
                self.storage.fetch_by_id(entity_id, scope=TrashedScope.WITH)
            ),
            False
        )

    # Helper Methods

    def _find(self,
              entity_id: Any,
              columns: Sequence[str] = ALL_COLUMNS,
              relations: Sequence[str] = (),
              appends: Sequence[str] = ()) -> T:
        """Raising lookup shared by find_by_id and the write operations."""
        return self.storage.fetch_by_id(entity_id, columns, relations, appends, TrashedScope.WITHOUT)

"""
Storage port - the capability set BaseRepository needs from a backing store

SQLAlchemyStorage is the production adapter. Anything else implementing
StoragePort (an in-memory fake in the test suite, for instance) can stand
in for it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Sequence, Type

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, load_only, selectinload

from .exceptions import (
    EntityNotFoundError,
    InvalidInputError,
    SoftDeleteNotSupportedError,
    StoreError,
)

ALL_COLUMNS = ('*',)


class TrashedScope(Enum):
    """Which rows a query sees with respect to soft deletes"""
    WITHOUT = "without_trashed"
    WITH = "with_trashed"
    ONLY = "only_trashed"


class StoragePort(ABC):
    """Operations a repository delegates to its backing store."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @property
    @abstractmethod
    def supports_soft_delete(self) -> bool:
        ...

    @abstractmethod
    def query(self, scope: TrashedScope = TrashedScope.WITHOUT) -> Any:
        """Native query builder for the bound model."""

    @abstractmethod
    def fetch_all(self,
                  columns: Sequence[str] = ALL_COLUMNS,
                  relations: Sequence[str] = (),
                  scope: TrashedScope = TrashedScope.WITHOUT) -> List[Any]:
        """Every row in scope, in primary-key order."""

    @abstractmethod
    def fetch_by_id(self,
                    entity_id: Any,
                    columns: Sequence[str] = ALL_COLUMNS,
                    relations: Sequence[str] = (),
                    appends: Sequence[str] = (),
                    scope: TrashedScope = TrashedScope.WITHOUT) -> Any:
        """One row by primary key. Raises EntityNotFoundError when absent."""

    @abstractmethod
    def insert(self, payload: Dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def refresh(self, entity: Any) -> Any:
        """Reload an entity's state from the store."""

    @abstractmethod
    def update(self, entity: Any, payload: Dict[str, Any]) -> bool:
        ...

    @abstractmethod
    def soft_delete(self, entity: Any) -> bool:
        ...

    @abstractmethod
    def restore(self, entity: Any) -> bool:
        ...

    @abstractmethod
    def hard_delete(self, entity: Any) -> bool:
        ...


class SQLAlchemyStorage(StoragePort):
    """
    StoragePort backed by a SQLAlchemy session and one mapped model class.

    Writes are flushed, not committed; the caller owns the unit of work.
    A model is treated as soft-deletable when it has a ``deleted_at`` column
    (see models.SoftDeleteMixin).
    """

    def __init__(self, session: Session, model_class: Type[Any]):
        """
        Args:
            session: SQLAlchemy database session
            model_class: The mapped model class this storage manages
        """
        self.session = session
        self.model_class = model_class

    @property
    def model_name(self) -> str:
        return self.model_class.__name__

    @property
    def supports_soft_delete(self) -> bool:
        return hasattr(self.model_class, 'deleted_at')

    @property
    def primary_key(self):
        return inspect(self.model_class).primary_key[0]

    # Query construction

    def query(self, scope: TrashedScope = TrashedScope.WITHOUT) -> Query:
        query = self.session.query(self.model_class)
        if not self.supports_soft_delete:
            if scope is TrashedScope.WITHOUT:
                return query
            raise SoftDeleteNotSupportedError(self.model_name)

        if scope is TrashedScope.WITHOUT:
            return query.filter(self.model_class.deleted_at.is_(None))
        if scope is TrashedScope.ONLY:
            return query.filter(self.model_class.deleted_at.isnot(None))
        return query

    def _build_query(self,
                     columns: Sequence[str],
                     relations: Sequence[str],
                     scope: TrashedScope) -> Query:
        query = self.query(scope)
        if columns and tuple(columns) != ALL_COLUMNS:
            query = query.options(load_only(*[self._column(name) for name in columns]))
        for path in relations:
            query = query.options(self._eager_load(path))
        return query

    def _column(self, name: str):
        mapper = inspect(self.model_class)
        if name not in mapper.column_attrs:
            raise InvalidInputError(
                f"{self.model_name} has no column {name!r}",
                details={"model": self.model_name, "column": name}
            )
        return getattr(self.model_class, name)

    def _eager_load(self, path: str):
        """selectinload for a relation, chaining dotted paths like 'posts.comments'."""
        option = None
        owner = self.model_class
        for name in path.split('.'):
            relationships = inspect(owner).relationships
            if name not in relationships:
                raise InvalidInputError(
                    f"{owner.__name__} has no relation {name!r}",
                    details={"model": owner.__name__, "relation": path}
                )
            attribute = getattr(owner, name)
            option = selectinload(attribute) if option is None else option.selectinload(attribute)
            owner = relationships[name].mapper.class_
        return option

    # Reads

    def fetch_all(self,
                  columns: Sequence[str] = ALL_COLUMNS,
                  relations: Sequence[str] = (),
                  scope: TrashedScope = TrashedScope.WITHOUT) -> List[Any]:
        query = self._build_query(columns, relations, scope)
        return self._run(lambda: query.order_by(self.primary_key.asc()).all(), 'fetch_all')

    def fetch_by_id(self,
                    entity_id: Any,
                    columns: Sequence[str] = ALL_COLUMNS,
                    relations: Sequence[str] = (),
                    appends: Sequence[str] = (),
                    scope: TrashedScope = TrashedScope.WITHOUT) -> Any:
        query = self._build_query(columns, relations, scope)
        entity = self._run(
            lambda: query.filter(self.primary_key == entity_id).one_or_none(),
            'fetch_by_id'
        )
        if entity is None:
            raise EntityNotFoundError(self.model_name, entity_id, scope.value)

        # The identity map returns the same instance on every lookup
        if hasattr(entity, 'set_appends'):
            entity.set_appends(*appends)
        elif appends:
            raise InvalidInputError(
                f"{self.model_name} does not support appended attributes",
                details={"model": self.model_name, "attributes": list(appends)}
            )
        return entity

    # Writes

    def insert(self, payload: Dict[str, Any]) -> Any:
        try:
            entity = self.model_class(**payload)
        except TypeError as e:
            raise InvalidInputError(str(e), details={"model": self.model_name}) from e

        def _insert():
            self.session.add(entity)
            self.session.flush()
            return entity

        return self._run(_insert, 'insert')

    def refresh(self, entity: Any) -> Any:
        def _refresh():
            self.session.refresh(entity)
            return entity

        return self._run(_refresh, 'refresh')

    def update(self, entity: Any, payload: Dict[str, Any]) -> bool:
        unknown = [field for field in payload if not hasattr(self.model_class, field)]
        if unknown:
            raise InvalidInputError(
                f"{unknown[0]!r} is an invalid keyword argument for {self.model_name}",
                details={"model": self.model_name, "fields": unknown}
            )

        def _update():
            for field, value in payload.items():
                setattr(entity, field, value)
            self.session.flush()
            return True

        return self._run(_update, 'update')

    def soft_delete(self, entity: Any) -> bool:
        # Models without soft deletes are removed outright
        if not self.supports_soft_delete:
            return self.hard_delete(entity)

        def _soft_delete():
            entity.soft_delete()
            self.session.flush()
            return True

        return self._run(_soft_delete, 'soft_delete')

    def restore(self, entity: Any) -> bool:
        if not self.supports_soft_delete:
            raise SoftDeleteNotSupportedError(self.model_name)

        def _restore():
            entity.restore()
            self.session.flush()
            return True

        return self._run(_restore, 'restore')

    def hard_delete(self, entity: Any) -> bool:
        def _hard_delete():
            self.session.delete(entity)
            self.session.flush()
            return True

        return self._run(_hard_delete, 'hard_delete')

    def _run(self, work, action: str):
        """Run a unit of session work, translating driver errors into StoreError."""
        try:
            return work()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(
                f"Error during {action} on {self.model_name}: {e}",
                details={"model": self.model_name, "action": action, "rolled_back": True}
            ) from e

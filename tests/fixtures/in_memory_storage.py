"""In-memory StoragePort for testing repository logic without a database.

Usage:
    storage = InMemoryStorage('Widget', fields={'name', 'size'})
    repo = BaseRepository(storage)
    widget = repo.create({'name': 'bolt'})
"""

from typing import Any, Dict, List, Optional, Sequence, Set

from repositories.exceptions import (
    EntityNotFoundError,
    InvalidInputError,
    SoftDeleteNotSupportedError,
    StoreError,
)
from repositories.storage import ALL_COLUMNS, StoragePort, TrashedScope
from utils.datetime_utils import utc_now


class Record:
    """A plain entity with attribute access, detached from storage."""

    def __init__(self, **fields):
        self.__dict__.update(fields)

    def __repr__(self):
        return f"Record({self.__dict__!r})"


class InMemoryStorage(StoragePort):
    """
    Dict-backed storage with auto-incrementing ids.

    Entities handed out are copies, so callers only see changes after they
    go through the storage, like rows read back from a database.
    Setting ``fail_with`` makes every call raise that exception.
    """

    def __init__(self,
                 name: str = 'Record',
                 fields: Optional[Set[str]] = None,
                 soft_deletes: bool = True,
                 relations: Optional[Dict[str, Any]] = None):
        self._name = name
        self._fields = set(fields or ())
        self._soft_deletes = soft_deletes
        self._relations = relations or {}
        self._rows: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1
        self.fail_with: Optional[Exception] = None
        self.calls: List[str] = []

    @property
    def model_name(self) -> str:
        return self._name

    @property
    def supports_soft_delete(self) -> bool:
        return self._soft_deletes

    def _enter(self, action: str) -> None:
        self.calls.append(action)
        if self.fail_with is not None:
            raise self.fail_with

    def _in_scope(self, row: Dict[str, Any], scope: TrashedScope) -> bool:
        if not self._soft_deletes:
            if scope is not TrashedScope.WITHOUT:
                raise SoftDeleteNotSupportedError(self._name)
            return True
        trashed = row.get('deleted_at') is not None
        if scope is TrashedScope.WITHOUT:
            return not trashed
        if scope is TrashedScope.ONLY:
            return trashed
        return True

    def _materialise(self, row: Dict[str, Any], columns: Sequence[str], relations: Sequence[str]) -> Record:
        if columns and tuple(columns) != ALL_COLUMNS:
            unknown = [c for c in columns if c != 'id' and c not in self._fields]
            if unknown:
                raise InvalidInputError(f"{self._name} has no column {unknown[0]!r}")
            data = {key: row.get(key) for key in set(columns) | {'id'}}
        else:
            data = dict(row)
        for name in relations:
            if name not in self._relations:
                raise InvalidInputError(f"{self._name} has no relation {name!r}")
            data[name] = self._relations[name](row)
        return Record(**data)

    def query(self, scope: TrashedScope = TrashedScope.WITHOUT) -> List[Record]:
        self._enter('query')
        return [Record(**row) for _, row in sorted(self._rows.items()) if self._in_scope(row, scope)]

    def fetch_all(self,
                  columns: Sequence[str] = ALL_COLUMNS,
                  relations: Sequence[str] = (),
                  scope: TrashedScope = TrashedScope.WITHOUT) -> List[Record]:
        self._enter('fetch_all')
        return [
            self._materialise(row, columns, relations)
            for _, row in sorted(self._rows.items())
            if self._in_scope(row, scope)
        ]

    def fetch_by_id(self,
                    entity_id: Any,
                    columns: Sequence[str] = ALL_COLUMNS,
                    relations: Sequence[str] = (),
                    appends: Sequence[str] = (),
                    scope: TrashedScope = TrashedScope.WITHOUT) -> Record:
        self._enter('fetch_by_id')
        row = self._rows.get(entity_id)
        if row is None or not self._in_scope(row, scope):
            raise EntityNotFoundError(self._name, entity_id, scope.value)
        entity = self._materialise(row, columns, relations)
        for name in appends:
            entity.__dict__[name] = f"{name}:{entity_id}"
        return entity

    def insert(self, payload: Dict[str, Any]) -> Record:
        self._enter('insert')
        unknown = [key for key in payload if key not in self._fields]
        if unknown:
            raise InvalidInputError(f"{unknown[0]!r} is an invalid keyword argument for {self._name}")
        row = {field: None for field in self._fields}
        row.update(payload)
        row['id'] = self._next_id
        row['deleted_at'] = None
        self._rows[row['id']] = row
        self._next_id += 1
        return Record(**row)

    def refresh(self, entity: Record) -> Record:
        self._enter('refresh')
        row = self._rows.get(entity.id)
        if row is None:
            raise StoreError(f"{self._name} {entity.id} vanished before refresh")
        return Record(**row)

    def update(self, entity: Record, payload: Dict[str, Any]) -> bool:
        self._enter('update')
        unknown = [key for key in payload if key not in self._fields]
        if unknown:
            raise InvalidInputError(f"{unknown[0]!r} is an invalid keyword argument for {self._name}")
        self._rows[entity.id].update(payload)
        return True

    def soft_delete(self, entity: Record) -> bool:
        self._enter('soft_delete')
        if not self._soft_deletes:
            return self.hard_delete(entity)
        self._rows[entity.id]['deleted_at'] = utc_now()
        return True

    def restore(self, entity: Record) -> bool:
        self._enter('restore')
        if not self._soft_deletes:
            raise SoftDeleteNotSupportedError(self._name)
        self._rows[entity.id]['deleted_at'] = None
        return True

    def hard_delete(self, entity: Record) -> bool:
        self._enter('hard_delete')
        del self._rows[entity.id]
        return True

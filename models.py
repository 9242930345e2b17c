# models.py
"""
Declarative mixins that give a model the capabilities BaseRepository relies on.

A model that should be soft-deletable mixes in SoftDeleteMixin; a model that
exposes computed attributes for serialisation mixes in AppendsMixin:

    class Post(SoftDeleteMixin, AppendsMixin, db.Model):
        __appendable__ = ('excerpt',)
        id = db.Column(db.Integer, primary_key=True)
        body = db.Column(db.Text)

        @property
        def excerpt(self):
            return self.body[:40]
"""

from typing import Any, Dict, Iterable, Tuple

from sqlalchemy import inspect

from extensions import db
from repositories.exceptions import InvalidInputError
from utils.datetime_utils import utc_now, ensure_utc


class SoftDeleteMixin:
    """Marks rows as deleted with a timestamp instead of removing them."""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None

    @property
    def deleted_at_utc(self):
        return ensure_utc(self.deleted_at) if self.deleted_at is not None else None

    def soft_delete(self) -> None:
        if self.deleted_at is None:
            self.deleted_at = utc_now()

    def restore(self) -> None:
        self.deleted_at = None


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class AppendsMixin:
    """
    Computed attributes that can be appended to an instance's serialised form.

    Only names listed in ``__appendable__`` may be appended. The appended set
    lives on the instance, and the session hands the same instance back on
    later lookups; use set_appends() to start from a clean set.
    """

    __appendable__: Tuple[str, ...] = ()

    @property
    def appended(self) -> Tuple[str, ...]:
        return tuple(getattr(self, '_appended', ()))

    def append(self, *names: str) -> 'AppendsMixin':
        self._check_appendable(names)
        current = list(self.appended)
        current.extend(name for name in names if name not in current)
        self._appended = tuple(current)
        return self

    def set_appends(self, *names: str) -> 'AppendsMixin':
        """Replace the appended set with exactly ``names``."""
        self._check_appendable(names)
        self._appended = tuple(dict.fromkeys(names))
        return self

    def _check_appendable(self, names: Iterable[str]) -> None:
        unknown = [name for name in names if name not in self.__appendable__]
        if unknown:
            raise InvalidInputError(
                f"{type(self).__name__} cannot append {', '.join(unknown)}",
                details={"model": type(self).__name__, "attributes": unknown}
            )

    def to_dict(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        """Loaded column values plus appended attributes."""
        state = inspect(self)
        skipped = set(exclude) | set(state.unloaded)
        data = {
            attr.key: getattr(self, attr.key)
            for attr in state.mapper.column_attrs
            if attr.key not in skipped
        }
        for name in self.appended:
            data[name] = getattr(self, name)
        return data

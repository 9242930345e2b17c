"""
Repository exceptions

Every failure inside a repository operation is classified into one of
these before it is logged, so callers can tell a missing row from a
broken database.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Category of a repository failure"""
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    UNSUPPORTED = "unsupported"
    STORE_ERROR = "store_error"


class RepositoryError(Exception):
    """Base class for all repository failures."""

    kind = ErrorKind.STORE_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundError(RepositoryError):
    """No row matched the lookup within the requested trashed scope."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, model_name: str, entity_id: Any, scope: str = "without_trashed"):
        self.model_name = model_name
        self.entity_id = entity_id
        super().__init__(
            f"{model_name} with id {entity_id!r} not found",
            details={"model": model_name, "id": entity_id, "scope": scope}
        )


class InvalidInputError(RepositoryError):
    """Unknown column, relation, appended attribute or payload field."""

    kind = ErrorKind.INVALID_INPUT


class SoftDeleteNotSupportedError(RepositoryError):
    """A trashed scope was requested on a model without soft deletes."""

    kind = ErrorKind.UNSUPPORTED

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(
            f"{model_name} does not support soft deletes",
            details={"model": model_name}
        )


class StoreError(RepositoryError):
    """The underlying store failed. The original exception is __cause__."""

    kind = ErrorKind.STORE_ERROR

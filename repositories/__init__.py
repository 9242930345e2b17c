"""
Repository Layer - Data Access Abstraction
Implements the Repository Pattern with soft-delete aware CRUD
"""

from .base_repository import BaseRepository
from .exceptions import (
    ErrorKind,
    RepositoryError,
    EntityNotFoundError,
    InvalidInputError,
    SoftDeleteNotSupportedError,
    StoreError
)
from .result import RepositoryResult
from .storage import StoragePort, SQLAlchemyStorage, TrashedScope

__all__ = [
    'BaseRepository',
    'ErrorKind',
    'RepositoryError',
    'EntityNotFoundError',
    'InvalidInputError',
    'SoftDeleteNotSupportedError',
    'StoreError',
    'RepositoryResult',
    'StoragePort',
    'SQLAlchemyStorage',
    'TrashedScope'
]

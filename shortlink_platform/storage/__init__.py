"""
Storage backends for Shortlink Platform.
"""

from .base import (
    BaseStore,
    GenerationError,
    InvalidURL,
    NotFound,
    Record,
    StorageUnavailable,
    StoreError,
)
from .ids import generate_id
from .sqlite_storage import SQLiteStore
from .storage import MemoryStore
from .storage_factory import get_storage
from .validation import is_valid_url, validate_url

__all__ = [
    "BaseStore",
    "GenerationError",
    "InvalidURL",
    "MemoryStore",
    "NotFound",
    "Record",
    "SQLiteStore",
    "StorageUnavailable",
    "StoreError",
    "generate_id",
    "get_storage",
    "is_valid_url",
    "validate_url",
]

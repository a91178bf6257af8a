"""
Base storage interface for Shortlink Platform.

Purpose:
    Define the one contract both backends (in-memory and SQLite) implement,
    so the HTTP layer can be handed either store without knowing which.

Contents:
    - Record: a shortened URL entry (id, original, created_at, hits)
    - BaseStore: create / get / get_stats / get_total_count / get_total_hits / close
    - The error taxonomy every backend raises

Testing & Coverage:
    Abstract methods are not executed directly in tests. They are annotated
    with `# pragma: no cover` so coverage tools skip the declarations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List


class StoreError(Exception):
    """Base class for every error a store raises."""


class InvalidURL(StoreError):
    """The target is not an absolute URL with a scheme and a host."""


class NotFound(StoreError):
    """No record exists for the requested id."""


class GenerationError(StoreError):
    """A fresh identifier could not be produced (entropy or uniqueness)."""


class StorageUnavailable(StoreError):
    """The backend cannot be reached, is corrupt, or has been closed."""


@dataclass
class Record:
    """One shortened URL entry.

    Stores hand out copies of their records; only the store writes `hits`.
    """

    id: str
    original: str
    created_at: datetime
    hits: int = 0

    def copy(self) -> "Record":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "original": self.original,
            "created_at": self.created_at.isoformat(),
            "hits": self.hits,
        }


class BaseStore(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def create(self, original: str) -> Record:
        """
        Validate `original`, mint a fresh id and store a record with hits=0.

        Raises:
            InvalidURL: `original` is not an absolute URL.
            GenerationError: no unique id could be produced.
            StorageUnavailable: the backend failed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get(self, record_id: str) -> Record:
        """
        Resolve `record_id` and count one hit atomically.

        Returns:
            Record: the record with its post-increment hit count.

        Raises:
            NotFound: no record has this id.
            StorageUnavailable: the backend failed; the hit is not counted.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_stats(self) -> List[Record]:
        """Return every record. Order is unspecified."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_total_count(self) -> int:
        """Return the number of records."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_total_hits(self) -> int:
        """Return the sum of hits over all records (0 when empty)."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def close(self) -> None:
        """Release backend resources."""
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

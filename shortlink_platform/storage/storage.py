"""
Storage module for Shortlink Platform (in-memory implementation).

Responsibilities:
    - Mint records for long URLs under fresh short ids
    - Resolve ids and count hits without lost updates
    - Report all records and the aggregate count/hit totals

Design:
    - One dict (id -> Record) guarded end-to-end by one ReadWriteLock.
    - `get` mutates, so it takes the write lock across lookup and increment.
    - Callers only ever receive copies; the stored Record never escapes the lock.
    - Nothing is persisted; records live until the process exits.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List

from .base import BaseStore, GenerationError, NotFound, Record
from .ids import generate_id
from .locks import ReadWriteLock
from .validation import validate_url


class MemoryStore(BaseStore):
    def __init__(self, id_factory: Callable[[], str] = generate_id, max_attempts: int = 2):
        """
        Initialize an empty store.

        Args:
            id_factory: Zero-argument callable returning a fresh id.
            max_attempts: How many ids to try before giving up on a collision.
        """
        self._urls: Dict[str, Record] = {}
        self._lock = ReadWriteLock()
        self._id_factory = id_factory
        self._max_attempts = max(1, max_attempts)

    def create(self, original: str) -> Record:
        validate_url(original)

        for _ in range(self._max_attempts):
            record_id = self._id_factory()
            record = Record(
                id=record_id,
                original=original,
                created_at=datetime.now(timezone.utc),
                hits=0,
            )
            with self._lock.write_locked():
                if record_id in self._urls:
                    continue
                self._urls[record_id] = record
                return record.copy()

        raise GenerationError("could not generate a unique id")

    def get(self, record_id: str) -> Record:
        with self._lock.write_locked():
            record = self._urls.get(record_id)
            if record is None:
                raise NotFound(record_id)
            record.hits += 1
            return record.copy()

    def get_stats(self) -> List[Record]:
        with self._lock.read_locked():
            return [record.copy() for record in self._urls.values()]

    def get_total_count(self) -> int:
        with self._lock.read_locked():
            return len(self._urls)

    def get_total_hits(self) -> int:
        with self._lock.read_locked():
            return sum(record.hits for record in self._urls.values())

    def close(self) -> None:
        """No-op: there is nothing to release and the store stays usable."""

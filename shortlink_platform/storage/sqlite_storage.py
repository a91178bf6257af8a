"""
SQLiteStore – durable on-disk storage for Shortlink Platform
===========================================================

This module persists records in a single SQLite file. It implements the same
`BaseStore` contract as the in-memory `MemoryStore` (see `storage.py`), so the
HTTP layer can switch backends without any code change.

Key Design Points
-----------------
- **Atomic hits**: `get` runs SELECT + UPDATE inside one `BEGIN IMMEDIATE`
  transaction. The write lock is taken up front, so two concurrent resolutions
  of the same id serialize instead of both reading the old count.
- **No silent overwrite**: `create` uses a plain INSERT. A primary-key clash
  on the generated id surfaces as `IntegrityError` and is retried with a fresh
  id; it never replaces an existing row.
- **Connections**: one short-lived connection per call, opened in autocommit
  mode (`isolation_level=None`) so transaction boundaries are explicit. The
  busy timeout lets concurrent writers wait on each other instead of failing.
- **Closed stores**: after `close()` every operation raises
  `StorageUnavailable`; closing twice is a no-op.

Schema
------
The table below is the compatibility surface for any tool reading the file:

    urls(id TEXT PRIMARY KEY, original TEXT NOT NULL,
         created_at TIMESTAMP NOT NULL, hits INTEGER NOT NULL DEFAULT 0)

`created_at` is written as an ISO-8601 string with a UTC offset.

Example
-------
>>> store = SQLiteStore("urls.db")
>>> record = store.create("https://example.com")
>>> store.get(record.id).hits
1
"""

import contextlib
import sqlite3
from datetime import datetime, timezone
from typing import Callable, List, Tuple

from .base import BaseStore, GenerationError, NotFound, Record, StorageUnavailable
from .ids import generate_id
from .validation import validate_url

SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    id TEXT PRIMARY KEY,
    original TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    hits INTEGER NOT NULL DEFAULT 0
)
"""

_SELECT_COLUMNS = "SELECT id, original, created_at, hits FROM urls"


def _row_to_record(row: Tuple) -> Record:
    record_id, original, created_at, hits = row
    return Record(
        id=record_id,
        original=original,
        created_at=datetime.fromisoformat(created_at),
        hits=int(hits),
    )


class SQLiteStore(BaseStore):
    """SQLite implementation of the store contract.

    Parameters
    ----------
    path : str
        Path of the database file; created if missing. Must be a real file:
        ":memory:" would give every connection its own empty database.
    timeout : float
        Seconds a connection waits for a lock held by another writer.
    id_factory : callable
        Zero-argument callable returning a fresh id.
    max_attempts : int
        Ids to try before a primary-key collision becomes `GenerationError`.

    Raises
    ------
    StorageUnavailable
        If the file cannot be opened or the schema cannot be created.
    """

    def __init__(
        self,
        path: str,
        timeout: float = 30.0,
        id_factory: Callable[[], str] = generate_id,
        max_attempts: int = 2,
    ) -> None:
        self.path = str(path)
        self.timeout = timeout
        self._id_factory = id_factory
        self._max_attempts = max(1, max_attempts)
        self._closed = False

        with self._conn() as con:
            try:
                con.execute("PRAGMA journal_mode=WAL")
                con.execute(SCHEMA)
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"cannot initialise schema in {self.path!r}") from exc

    # ---- Internal helpers -------------------------------------------------

    @contextlib.contextmanager
    def _conn(self):
        """Context manager yielding an autocommit connection, closed on exit.

        Closing a connection with an open transaction rolls it back, so any
        error raised inside the block leaves the database untouched.
        """
        if self._closed:
            raise StorageUnavailable("store is closed")
        try:
            con = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"cannot open database {self.path!r}") from exc
        try:
            yield con
        finally:
            con.close()

    # ---- Contract methods -------------------------------------------------

    def create(self, original: str) -> Record:
        validate_url(original)

        with self._conn() as con:
            for _ in range(self._max_attempts):
                record = Record(
                    id=self._id_factory(),
                    original=original,
                    created_at=datetime.now(timezone.utc),
                    hits=0,
                )
                try:
                    con.execute(
                        "INSERT INTO urls (id, original, created_at, hits) VALUES (?, ?, ?, 0)",
                        (record.id, record.original, record.created_at.isoformat()),
                    )
                except sqlite3.IntegrityError:
                    continue
                except sqlite3.Error as exc:
                    raise StorageUnavailable("insert failed") from exc
                return record

        raise GenerationError("could not generate a unique id")

    def get(self, record_id: str) -> Record:
        with self._conn() as con:
            try:
                con.execute("BEGIN IMMEDIATE")
                row = con.execute(f"{_SELECT_COLUMNS} WHERE id = ?", (record_id,)).fetchone()
                if row is None:
                    con.execute("ROLLBACK")
                    raise NotFound(record_id)
                con.execute("UPDATE urls SET hits = hits + 1 WHERE id = ?", (record_id,))
                con.execute("COMMIT")
            except sqlite3.Error as exc:
                raise StorageUnavailable("hit transaction failed") from exc

        record = _row_to_record(row)
        record.hits += 1
        return record

    def get_stats(self) -> List[Record]:
        with self._conn() as con:
            try:
                rows = con.execute(_SELECT_COLUMNS).fetchall()
            except sqlite3.Error as exc:
                raise StorageUnavailable("stats query failed") from exc
        return [_row_to_record(row) for row in rows]

    def get_total_count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM urls")

    def get_total_hits(self) -> int:
        return self._scalar("SELECT COALESCE(SUM(hits), 0) FROM urls")

    def close(self) -> None:
        """Mark the store closed. Later calls raise StorageUnavailable."""
        self._closed = True

    # ---- Aggregates -------------------------------------------------------

    def _scalar(self, query: str) -> int:
        with self._conn() as con:
            try:
                (value,) = con.execute(query).fetchone()
            except sqlite3.Error as exc:
                raise StorageUnavailable("aggregate query failed") from exc
        return int(value)

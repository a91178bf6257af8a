"""
Storage factory – switch storage backend from config
====================================================

Centralizes selection of the storage backend (in-memory vs SQLite) so the
rest of the app holds a `BaseStore` and never asks which one it got.

- Reads the environment **at call time** to avoid stale values in tests.
- Imports the SQLite backend only when it is selected.

Environment variables
---------------------
- SHORTLINK_STORAGE_BACKEND: "memory" (default) or "sqlite"
- SHORTLINK_DB_PATH:         database file if backend=="sqlite" (default "urls.db")
- SHORTLINK_DB_TIMEOUT:      busy timeout in seconds (default from settings)
"""

import os
from typing import Optional

from shortlink_platform.config import settings
from shortlink_platform.storage.base import BaseStore
from shortlink_platform.storage.storage import MemoryStore

BACKENDS = ("memory", "sqlite")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStore:
    """
    Return a store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" or "sqlite". If omitted, reads SHORTLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend constructor. For sqlite: path="...", timeout=...

    Raises
    ------
    ValueError
        Unknown backend name.
    StorageUnavailable
        The SQLite file cannot be opened.
    """
    be = (backend or os.getenv("SHORTLINK_STORAGE_BACKEND", "memory")).strip().lower()

    if be == "memory":
        return MemoryStore(**kwargs)

    if be == "sqlite":
        from shortlink_platform.storage.sqlite_storage import SQLiteStore

        path = kwargs.pop("path", None) or os.getenv("SHORTLINK_DB_PATH", settings.DB_PATH)
        kwargs.setdefault("timeout", settings.DB_TIMEOUT)
        return SQLiteStore(path, **kwargs)

    raise ValueError(f"Unknown storage backend: {be!r}")

"""
Global pytest fixtures for the Shortlink Platform test suite.

Responsibilities:
    - Provide fresh MemoryStore and SQLiteStore fixtures (SQLite on a tmp file)
    - Provide a `store` fixture parametrized over both backends, so contract
      tests run once per backend
    - Provide a fresh FastAPI TestClient via the app factory

Why an app factory?
    Using `create_app(store)` gives each test its own store, eliminating
    cross-test state.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_platform.storage.sqlite_storage import SQLiteStore
from shortlink_platform.storage.storage import MemoryStore


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SQLiteStore:
    store = SQLiteStore(str(tmp_path / "urls.db"))
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each contract test runs against both backends."""
    if request.param == "memory":
        s = MemoryStore()
    else:
        s = SQLiteStore(str(tmp_path / "contract.db"))
    yield s
    s.close()


@pytest.fixture
def client(store) -> TestClient:
    """
    Provide a TestClient over a fresh app instance for each backend.

    The client is used as a context manager so the app's lifespan runs and
    closes the store on exit.
    """
    with TestClient(create_app(store)) as c:
        yield c

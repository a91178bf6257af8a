"""
Runtime configuration for Shortlink Platform
============================================

Simple settings module that reads from environment variables (only here),
and exposes a stable `settings` object for the rest of the codebase.
Avoid reading env vars anywhere else; import from this module instead.
The storage factory is the one exception: it re-reads the backend name at
call time so tests can flip it with monkeypatch.

Storage
-------
- SHORTLINK_STORAGE_BACKEND : "memory" (default) or "sqlite"
- SHORTLINK_DB_PATH         : SQLite file path (default "urls.db")
- SHORTLINK_DB_TIMEOUT      : seconds a connection waits on a locked database (default 30)

Service
-------
- SHORTLINK_LOG_LEVEL       : logging level name (default "INFO")
- SHORTLINK_PORT            : port for `python main.py` (default 8080)
"""

import os


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


class _Settings:
    # -------- Storage --------
    STORAGE_BACKEND: str = os.getenv("SHORTLINK_STORAGE_BACKEND", "memory").strip().lower()
    DB_PATH: str = os.getenv("SHORTLINK_DB_PATH", "urls.db")
    DB_TIMEOUT: float = _get_float("SHORTLINK_DB_TIMEOUT", 30.0)

    # -------- Service --------
    LOG_LEVEL: str = os.getenv("SHORTLINK_LOG_LEVEL", "INFO").strip().upper()
    PORT: int = _get_int("SHORTLINK_PORT", 8080)


settings = _Settings()

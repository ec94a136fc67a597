"""
Storage factory – switch storage backend from config
====================================================

This module centralizes selection of the storage backend (memory, SQLite,
PostgreSQL) so the rest of the app can stay ignorant of where data lives.

Behaviour
---------
- Reads configuration **at call time** (via `load_settings()`) to avoid stale
  values in tests.
- Imports the PostgreSQL backend **only if** it is selected.
- SQL backends get their schema bootstrapped before they are returned
  (pass `ensure_schema=False` to skip).

Configuration
-------------
- DOVE_STORAGE_BACKEND: "memory" (default), "sqlite" or "postgres"
- DOVE_SQLITE_PATH:     SQLite file if backend=="sqlite"
- DOVE_DB_DSN:          DSN string if backend=="postgres"
- DOVE_DB_TIMEOUT:      per-call deadline (seconds) for SQL backends
"""

import logging
from pathlib import Path
from typing import Optional

from ..config import load_settings
from .base import BaseStorage
from .storage import Storage

__all__ = ["get_storage"]

log = logging.getLogger("dove.storage")


def get_storage(backend: Optional[str] = None, ensure_schema: bool = True, **kwargs) -> BaseStorage:
    """
    Return a BaseStorage instance based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory", "sqlite" or "postgres". If omitted, reads DOVE_STORAGE_BACKEND.
    ensure_schema : bool
        Create tables/indexes for SQL backends before returning.
    kwargs : dict
        Overrides: path="..." for sqlite, dsn="..." for postgres, timeout=<float>.

    Raises
    ------
    ValueError
        Unknown backend, or missing DSN for postgres.
    """
    cfg = load_settings()
    be = (backend or cfg.STORAGE_BACKEND).strip().lower()
    timeout = float(kwargs.get("timeout") or cfg.DB_TIMEOUT)

    log.info("selected storage backend", extra={"backend": be})

    if be == "memory":
        return Storage()

    if be == "sqlite":
        from .sqlite_storage import SQLiteStorage

        path = kwargs.get("path") or cfg.SQLITE_PATH
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        sqlite_storage = SQLiteStorage(path=path, timeout=timeout)
        if ensure_schema:
            sqlite_storage.ensure_schema()
        return sqlite_storage

    if be == "postgres":
        dsn = kwargs.get("dsn") or cfg.DB_DSN
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env DOVE_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from .db_storage import DBStorage

        db_storage = DBStorage(dsn=dsn, timeout=timeout)
        if ensure_schema:
            db_storage.ensure_schema()
        return db_storage

    raise ValueError(f"Unknown storage backend: {be!r}")

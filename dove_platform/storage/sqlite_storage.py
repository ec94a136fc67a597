"""
SQLiteStorage – embedded, file-backed storage for Dove Platform
===============================================================

Implements the `BaseStorage` contract on top of the standard-library `sqlite3`
driver, so a single-node deployment gets durable storage without running a
database server.

Key Design Points
-----------------
- **Uniqueness**: enforced by the `UNIQUE` constraint on `short_code`. The
  resulting `IntegrityError` is translated to `ShortCodeExistsError`; the
  INSERT itself is the serialization point for concurrent creates.
- **Atomic increment**: one `UPDATE ... SET clicks = clicks + 1` statement
  inside a `BEGIN IMMEDIATE` transaction, followed by a read of the row while
  the write lock is still held. No Python-side read-modify-write.
- **Timestamps**: ISO-8601 UTC strings; `updated_at` is set by the UPDATE.
- **Connections**: one short-lived connection per call (safe across threads),
  WAL journal, and a busy timeout acting as the per-call deadline. A call that
  cannot get the lock within the timeout fails with
  `RepositoryUnavailableError`.

Example
-------
>>> storage = SQLiteStorage("/tmp/dove.db")
>>> storage.ensure_schema()
>>> storage.create(URLRecord.new("abc123", "https://example.com")).id
1
"""

import contextlib
import logging
import sqlite3
from dataclasses import replace
from typing import Iterator

from ..exceptions import (
    DoveError,
    InvalidInputError,
    RepositoryUnavailableError,
    ShortCodeExistsError,
    URLNotFoundError,
)
from ..models import URLRecord, parse_timestamp, utcnow
from .base import BaseStorage

__all__ = ["SQLiteStorage", "SCHEMA"]

log = logging.getLogger("dove.storage.sqlite")

SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    short_code TEXT UNIQUE NOT NULL,
    original_url TEXT NOT NULL,
    clicks INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK (length(short_code) >= 3),
    CHECK (length(original_url) > 0),
    CHECK (clicks >= 0)
);

CREATE INDEX IF NOT EXISTS idx_urls_created_at ON urls(created_at DESC);

CREATE INDEX IF NOT EXISTS idx_urls_popular ON urls(clicks DESC, created_at DESC) WHERE clicks > 0;
"""

_COLUMNS = "id, short_code, original_url, clicks, created_at, updated_at"


def _row_to_record(row: sqlite3.Row) -> URLRecord:
    return URLRecord(
        id=row["id"],
        short_code=row["short_code"],
        original_url=row["original_url"],
        clicks=row["clicks"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def _translate_error(err: sqlite3.Error, short_code: str = "") -> DoveError:
    """Map sqlite3 exceptions onto the shared error taxonomy."""
    message = str(err)
    if isinstance(err, sqlite3.IntegrityError):
        if "UNIQUE" in message and "short_code" in message:
            return ShortCodeExistsError(short_code)
        # NOT NULL / CHECK violations
        return InvalidInputError(f"constraint violation: {message}")
    log.error("sqlite error", extra={"error": message, "short_code": short_code})
    return RepositoryUnavailableError(f"sqlite error: {message}")


class SQLiteStorage(BaseStorage):
    """SQLite implementation of the storage contract.

    Parameters
    ----------
    path : str
        Database file path. ":memory:" is rejected because every call opens
        its own connection; use the in-memory `Storage` backend instead.
    timeout : float
        Seconds to wait for a database lock before giving up.
    """

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        if not path or path == ":memory:":
            raise ValueError("SQLiteStorage needs a database file path")
        self.path = path
        self.timeout = timeout

    # ---- Internal helpers -------------------------------------------------

    @contextlib.contextmanager
    def _conn(self, short_code: str = "") -> Iterator[sqlite3.Connection]:
        """Open a connection in autocommit mode; translate driver errors."""
        try:
            con = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise RepositoryUnavailableError(f"cannot open sqlite database {self.path!r}") from e
        con.row_factory = sqlite3.Row
        try:
            yield con
        except sqlite3.Error as e:
            raise _translate_error(e, short_code) from e
        finally:
            if con.in_transaction:
                con.rollback()
            con.close()

    def ensure_schema(self) -> None:
        """Create the `urls` table and indexes if missing (idempotent)."""
        with self._conn() as con:
            con.execute("PRAGMA journal_mode=WAL")
            con.executescript(SCHEMA)
        log.info("sqlite schema ready", extra={"path": self.path})

    # ---- Contract methods -------------------------------------------------

    def create(self, record: URLRecord) -> URLRecord:
        with self._conn(record.short_code) as con:
            cur = con.execute(
                "INSERT INTO urls (short_code, original_url, clicks, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (
                    record.short_code,
                    record.original_url,
                    record.clicks,
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
            created = replace(record, id=cur.lastrowid)
        log.debug("record created", extra={"short_code": created.short_code, "id": created.id})
        return created

    def find_by_short_code(self, short_code: str) -> URLRecord:
        with self._conn(short_code) as con:
            row = con.execute(f"SELECT {_COLUMNS} FROM urls WHERE short_code = ?", (short_code,)).fetchone()
        if row is None:
            raise URLNotFoundError(short_code)
        return _row_to_record(row)

    def increment_clicks(self, short_code: str) -> URLRecord:
        with self._conn(short_code) as con:
            con.execute("BEGIN IMMEDIATE")
            cur = con.execute(
                "UPDATE urls SET clicks = clicks + 1, updated_at = ? WHERE short_code = ?",
                (utcnow().isoformat(), short_code),
            )
            if cur.rowcount == 0:
                raise URLNotFoundError(short_code)
            row = con.execute(f"SELECT {_COLUMNS} FROM urls WHERE short_code = ?", (short_code,)).fetchone()
            con.execute("COMMIT")
        return _row_to_record(row)

    def exists(self, short_code: str) -> bool:
        with self._conn(short_code) as con:
            row = con.execute("SELECT EXISTS (SELECT 1 FROM urls WHERE short_code = ?)", (short_code,)).fetchone()
        return bool(row[0]) if row else False

    def health_check(self) -> None:
        with self._conn() as con:
            con.execute("SELECT 1").fetchone()

    def close(self) -> None:
        # Connections are per call; nothing stays open between calls.
        return None

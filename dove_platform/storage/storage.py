"""
Storage module for Dove Platform (in-memory implementation).

Responsibilities:
    - Save URL records keyed by short code
    - Track click counts with atomic increments
    - Provide lookup and existence probes

Design:
    - This is the volatile reference implementation of the BaseStorage contract.
      Nothing survives a process restart.
    - The dict is the only shared mutable state and is guarded by a single
      reader-writer lock: lookups and existence probes share it, create and
      increment take it exclusively. Every critical section is O(1).
    - Instances are constructed explicitly and injected into the manager;
      there is no module-level store.
    - Callers only ever receive copies of stored records.

Example:
    >>> storage = Storage()
    >>> storage.create(URLRecord.new("abc123", "https://example.com")).id
    1
    >>> storage.increment_clicks("abc123").clicks
    1
"""

import contextlib
import logging
import threading
from dataclasses import replace
from typing import Dict, Iterator

from ..exceptions import ShortCodeExistsError, URLNotFoundError
from ..models import URLRecord, utcnow
from .base import BaseStorage

__all__ = ["Storage"]

log = logging.getLogger("dove.storage.memory")


class _ReadWriteLock:
    """Writer-preferring reader-writer lock built on a Condition."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Storage(BaseStorage):
    def __init__(self) -> None:
        """
        Initialize an empty store.

        Internal schema:
            self._urls = {short_code: URLRecord}
        """
        self._urls: Dict[str, URLRecord] = {}
        self._lock = _ReadWriteLock()
        self._next_id = 1

    def create(self, record: URLRecord) -> URLRecord:
        """
        Insert a record; check and insert happen under the writer lock.

        Raises:
            ShortCodeExistsError: If the code is already stored.
        """
        with self._lock.write():
            if record.short_code in self._urls:
                raise ShortCodeExistsError(record.short_code)
            created = replace(record, id=self._next_id)
            self._next_id += 1
            self._urls[record.short_code] = created
        log.debug("record created", extra={"short_code": created.short_code, "id": created.id})
        return created

    def find_by_short_code(self, short_code: str) -> URLRecord:
        with self._lock.read():
            record = self._urls.get(short_code)
        if record is None:
            raise URLNotFoundError(short_code)
        return record

    def increment_clicks(self, short_code: str) -> URLRecord:
        """
        Add one click under the writer lock.

        Raises:
            URLNotFoundError: If the code is unknown.
        """
        with self._lock.write():
            record = self._urls.get(short_code)
            if record is None:
                raise URLNotFoundError(short_code)
            updated = record.with_click(utcnow())
            self._urls[short_code] = updated
        return updated

    def exists(self, short_code: str) -> bool:
        with self._lock.read():
            return short_code in self._urls

    def health_check(self) -> None:
        return None

    def close(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._urls)

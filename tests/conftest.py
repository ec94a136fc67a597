"""
Global pytest fixtures for the Dove Platform test suite.

Responsibilities:
    - Provide isolated storage backends (in-memory, SQLite on tmp_path)
    - Provide cache doubles: a dict-backed cache and an always-failing cache
    - Provide URLManager fixtures wired to those doubles
    - Provide a fresh FastAPI TestClient via the app factory

Why an app factory?
    Using `create_app(storage=..., cache=...)` gives each test fresh in-memory
    state, eliminating cross-test flakiness.
"""

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from dove_platform.cache.base import BaseCache
from dove_platform.cache.noop import NoOpCache
from dove_platform.exceptions import CacheUnavailableError
from dove_platform.manager.strategies import RandomStrategy
from dove_platform.manager.url_manager import URLManager
from dove_platform.models import URLRecord
from dove_platform.storage.sqlite_storage import SQLiteStorage
from dove_platform.storage.storage import Storage

BASE_URL = "http://short.test"


class DictCache(BaseCache):
    """In-process cache double that records what the manager does with it."""

    def __init__(self) -> None:
        self.entries: Dict[str, URLRecord] = {}
        self.ttls: Dict[str, int] = {}
        self.deleted: List[str] = []

    def get(self, short_code: str) -> Optional[URLRecord]:
        return self.entries.get(short_code)

    def set(self, record: URLRecord, ttl: int) -> None:
        self.entries[record.short_code] = record
        self.ttls[record.short_code] = ttl

    def delete(self, short_code: str) -> None:
        self.deleted.append(short_code)
        self.entries.pop(short_code, None)

    def ping(self) -> None:
        return None


class FailingCache(BaseCache):
    """Cache double whose every call fails like an unreachable Redis."""

    def get(self, short_code: str) -> Optional[URLRecord]:
        raise CacheUnavailableError("redis get failed: connection refused")

    def set(self, record: URLRecord, ttl: int) -> None:
        raise CacheUnavailableError("redis set failed: connection refused")

    def delete(self, short_code: str) -> None:
        raise CacheUnavailableError("redis delete failed: connection refused")

    def ping(self) -> None:
        raise CacheUnavailableError("redis ping failed: connection refused")


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory storage backend."""
    return Storage()


@pytest.fixture
def sqlite_storage(tmp_path) -> SQLiteStorage:
    """SQLite backend on a throwaway file with the schema in place."""
    backend = SQLiteStorage(str(tmp_path / "dove.db"), timeout=10.0)
    backend.ensure_schema()
    return backend


@pytest.fixture
def dict_cache() -> DictCache:
    return DictCache()


@pytest.fixture
def failing_cache() -> FailingCache:
    return FailingCache()


@pytest.fixture
def manager(storage: Storage) -> URLManager:
    """URLManager over in-memory storage with caching disabled."""
    return URLManager(storage=storage, cache=NoOpCache(), code_strategy=RandomStrategy(), base_url=BASE_URL)


@pytest.fixture
def cached_manager(storage: Storage, dict_cache: DictCache) -> URLManager:
    """URLManager over in-memory storage with a dict cache in front."""
    return URLManager(
        storage=storage,
        cache=dict_cache,
        cache_ttl=120,
        code_strategy=RandomStrategy(),
        base_url=BASE_URL,
    )


@pytest.fixture
def client(storage: Storage) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance over in-memory storage.
    """
    from main import create_app

    return TestClient(create_app(storage=storage, cache=NoOpCache()))

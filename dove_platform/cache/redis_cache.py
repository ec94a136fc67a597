"""Redis-backed cache for URL records

Responsibilities:
    - Store URL records under namespaced keys with a TTL;
    - Serve cached records on the redirect hot path;
    - Translate every Redis or payload failure into CacheUnavailableError.

Key format:
    url:<short_code>   ->   JSON of URLRecord.to_dict()

Classes:
    RedisCache:
        BaseCache implementation over a `redis.Redis` client.

Example:
    >>> cache = RedisCache.from_url("redis://localhost:6379/0")
    >>> cache.set(URLRecord.new("abc123", "https://example.com"), ttl=600)
    >>> cache.get("abc123").original_url
    'https://example.com'
    >>> cache.get("missing") is None
    True
"""

import functools
import json
import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar

import redis

from ..exceptions import CacheUnavailableError
from ..models import URLRecord
from .base import BaseCache

__all__ = ["RedisCache", "KEY_PREFIX"]

log = logging.getLogger("dove.cache.redis")

KEY_PREFIX = "url:"

F = TypeVar("F", bound=Callable[..., Any])


def handle_redis_errors(method: F) -> F:
    """Wrap Redis-interacting methods so driver errors become CacheUnavailableError

    Covers connection refusals, socket timeouts (the per-call deadline) and any
    other `redis.exceptions.RedisError`.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except redis.exceptions.RedisError as e:
            log.error("redis call failed", extra={"operation": method.__name__, "error": str(e)})
            raise CacheUnavailableError(f"redis {method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


class RedisCache(BaseCache):
    """Cache URL records in Redis.

    Attributes:
        redis (redis.Redis):
            Client used for all commands. Must use `decode_responses=True`.
    """

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis = redis_client

    @classmethod
    def from_url(cls, url: str, timeout: float = 1.0) -> "RedisCache":
        """Build a cache with its own client; `timeout` bounds every socket call."""
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client)

    @staticmethod
    def key_for(short_code: str) -> str:
        return f"{KEY_PREFIX}{short_code}"

    @handle_redis_errors
    def get(self, short_code: str) -> Optional[URLRecord]:
        key = self.key_for(short_code)
        raw = self.redis.get(key)
        if raw is None:
            return None
        try:
            return URLRecord.from_dict(json.loads(raw))
        except (TypeError, ValueError, KeyError) as e:
            log.error("cannot decode cached value", extra={"key": key, "error": str(e)})
            raise CacheUnavailableError(f"failed to decode cached value for {key}") from e

    @handle_redis_errors
    def set(self, record: URLRecord, ttl: int) -> None:
        key = self.key_for(record.short_code)
        try:
            payload = json.dumps(record.to_dict())
        except (TypeError, ValueError) as e:
            raise CacheUnavailableError(f"failed to encode record for {key}") from e
        self.redis.set(key, payload, ex=max(1, int(ttl)))

    @handle_redis_errors
    def delete(self, short_code: str) -> None:
        self.redis.delete(self.key_for(short_code))

    @handle_redis_errors
    def ping(self) -> None:
        if not self.redis.ping():
            raise CacheUnavailableError("redis ping returned a falsy reply")

    def close(self) -> None:
        try:
            self.redis.close()
        except redis.exceptions.RedisError as e:
            log.warning("failed to close redis client", extra={"error": str(e)})

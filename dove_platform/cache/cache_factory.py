"""
Cache factory – choose Redis or the no-op cache from config
===========================================================

- DOVE_CACHE_ENABLED false (default) -> NoOpCache.
- Enabled -> RedisCache, pinged once. If Redis cannot be reached at startup
  the service still starts, with caching disabled (NoOpCache) and a warning.

Configuration is read at call time via `load_settings()`.
"""

import logging
from typing import Optional

from ..config import load_settings
from ..exceptions import CacheUnavailableError
from .base import BaseCache
from .noop import NoOpCache

__all__ = ["get_cache"]

log = logging.getLogger("dove.cache")


def get_cache(enabled: Optional[bool] = None, redis_url: Optional[str] = None, timeout: Optional[float] = None) -> BaseCache:
    """
    Return the cache implementation to put in front of storage.

    Parameters
    ----------
    enabled : bool, optional
        Overrides DOVE_CACHE_ENABLED.
    redis_url : str, optional
        Overrides DOVE_REDIS_URL.
    timeout : float, optional
        Overrides DOVE_CACHE_TIMEOUT (socket deadline in seconds).
    """
    cfg = load_settings()
    use_cache = cfg.CACHE_ENABLED if enabled is None else enabled
    if not use_cache:
        log.info("caching disabled")
        return NoOpCache()

    url = redis_url or cfg.REDIS_URL
    # Local import: redis is only loaded when caching is on
    from .redis_cache import RedisCache

    cache = RedisCache.from_url(url, timeout=timeout or cfg.CACHE_TIMEOUT)
    try:
        cache.ping()
    except CacheUnavailableError as e:
        log.warning("failed to connect to redis, caching will be disabled", extra={"error": str(e)})
        cache.close()
        return NoOpCache()

    log.info("using redis cache", extra={"redis_url": url, "ttl": cfg.CACHE_TTL})
    return cache

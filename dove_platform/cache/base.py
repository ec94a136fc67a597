"""
Base cache interface for Dove Platform.

The cache is a non-authoritative, TTL-bounded copy of URL records sitting in
front of the storage backend. It is strictly an optimization:

    - `get` returns None on a miss (absent or expired); a miss is not an error.
    - Implementations raise CacheUnavailableError on connection or
      (de)serialization failures; the manager logs and absorbs it.
    - A no-op implementation stands in when caching is disabled, so the
      manager has a single code path.

Testing & Coverage:
    Abstract declarations are marked `# pragma: no cover`.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import URLRecord

__all__ = ["BaseCache"]


class BaseCache(ABC):
    """Abstract base for cache backends."""

    @abstractmethod  # pragma: no cover
    def get(self, short_code: str) -> Optional[URLRecord]:
        """Return the cached record or None on a miss."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def set(self, record: URLRecord, ttl: int) -> None:
        """Store or overwrite `record` for `ttl` seconds."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete(self, short_code: str) -> None:
        """Invalidate the entry for `short_code`."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> None:
        """Raise CacheUnavailableError if the cache cannot be reached."""
        raise NotImplementedError

    def close(self) -> None:
        """Release client resources. Default: nothing to release."""
        return None

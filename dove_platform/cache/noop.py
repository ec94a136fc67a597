"""
No-op cache used when caching is disabled.

Every lookup is a miss, writes are discarded, and the cache always reports
itself healthy.
"""

from typing import Optional

from ..models import URLRecord
from .base import BaseCache

__all__ = ["NoOpCache"]


class NoOpCache(BaseCache):
    def get(self, short_code: str) -> Optional[URLRecord]:
        return None

    def set(self, record: URLRecord, ttl: int) -> None:
        return None

    def delete(self, short_code: str) -> None:
        return None

    def ping(self) -> None:
        return None

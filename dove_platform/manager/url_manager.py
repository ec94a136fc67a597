"""
URLManager module for Dove Platform.

Responsibilities:
    - Validate creation requests (URL format, custom code rules)
    - Allocate short codes: custom codes as given, generated codes otherwise
    - Persist records through the injected storage backend
    - Keep the cache warm: write-through on create, read-through on lookup,
      update-through after click increments
    - Absorb every cache failure (log and continue)

Allocation flow (create_short_url):
    validate -> pick code -> storage.exists() fast path -> URLRecord.new()
    -> storage.create() (the real uniqueness guard) -> cache.set() -> response

Collision policy:
    - Custom code taken -> ShortCodeExistsError straight away.
    - Generated code taken -> generate a fresh code and retry, up to
      `max_attempts` attempts; the last collision is raised as
      ShortCodeExistsError. Each retry is logged at WARNING.

Design notes:
    - Storage, cache and strategy are injected; nothing here is global.
    - The manager never inspects backend-specific errors: backends raise the
      shared taxonomy from `dove_platform.exceptions`.
    - Caching disabled means a NoOpCache is injected, so there is one code path.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..cache.base import BaseCache
from ..cache.noop import NoOpCache
from ..exceptions import CacheUnavailableError, ShortCodeExistsError, ValidationFailedError
from ..models import URLRecord
from ..schemas import CreateURLRequest, URLResponse, validation_details
from ..storage.base import BaseStorage
from .strategies import BaseStrategy, get_strategy_from_config

__all__ = ["URLManager", "DEFAULT_CACHE_TTL"]

log = logging.getLogger("dove.manager")

DEFAULT_CACHE_TTL = 600  # seconds


class URLManager:
    """
    Coordinates short-code allocation and resolution on top of storage and cache.
    """

    def __init__(
        self,
        storage: BaseStorage,
        cache: Optional[BaseCache] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        code_strategy: Optional[BaseStrategy] = None,
        code_length: int = 6,
        base_url: str = "http://localhost:8080",
        max_attempts: int = 5,
    ):
        """
        Initialize URLManager.

        Args:
            storage (BaseStorage): Durable backend (source of truth).
            cache (Optional[BaseCache]): Cache in front of storage; NoOpCache if omitted.
            cache_ttl (int): Cache entry TTL in seconds.
            code_strategy (Optional[BaseStrategy]): Generator for codes; from config if omitted.
            code_length (int): Length of generated codes.
            base_url (str): Prefix used to build `short_url`.
            max_attempts (int): Attempts for generated codes when they collide.
        """
        self.storage = storage
        self.cache = cache if cache is not None else NoOpCache()
        self.cache_ttl = cache_ttl
        self.code_strategy = code_strategy if code_strategy is not None else get_strategy_from_config()
        self.code_length = code_length
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max(1, max_attempts)

    # ---------------------------------------------------------------------
    # Cache helpers (best effort)
    # ---------------------------------------------------------------------
    def _cache_get(self, short_code: str) -> Optional[URLRecord]:
        try:
            return self.cache.get(short_code)
        except CacheUnavailableError as e:
            log.warning("cache error during get", extra={"short_code": short_code, "error": str(e)})
            return None

    def _cache_set(self, record: URLRecord, reason: str) -> None:
        try:
            self.cache.set(record, self.cache_ttl)
        except CacheUnavailableError as e:
            log.warning(
                "failed to cache url",
                extra={"short_code": record.short_code, "reason": reason, "error": str(e)},
            )

    def _short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"

    def _allocate(self, short_code: str, url: str) -> URLRecord:
        # exists() is only a fast path; create() is what enforces uniqueness.
        if self.storage.exists(short_code):
            raise ShortCodeExistsError(short_code)
        return self.storage.create(URLRecord.new(short_code, url))

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create_short_url(self, url: Optional[str], custom_code: Optional[str] = None) -> URLResponse:
        """
        Create a short URL, optionally with a caller-chosen code.

        Returns:
            URLResponse: code, short URL, original URL and metadata.

        Raises:
            ValidationFailedError: Bad URL or custom code (per-field details).
            ShortCodeExistsError: Custom code taken, or generated codes kept colliding.
            RepositoryUnavailableError: Storage failure.
        """
        try:
            req = CreateURLRequest.model_validate({"url": url, "customAlias": custom_code})
        except ValidationError as e:
            raise ValidationFailedError(validation_details(e)) from e

        attempt = 0
        while True:
            if req.custom_code:
                short_code = req.custom_code
            else:
                short_code = self.code_strategy.generate(req.url, length=self.code_length, counter=attempt)
            try:
                created = self._allocate(short_code, req.url)
                break
            except ShortCodeExistsError:
                attempt += 1
                if req.custom_code or attempt >= self.max_attempts:
                    raise
                log.warning(
                    "generated short code collided, retrying",
                    extra={"short_code": short_code, "attempt": attempt, "max_attempts": self.max_attempts},
                )

        self._cache_set(created, "create")

        return URLResponse(
            id=created.id,
            short_url=self._short_url(created.short_code),
            short_code=created.short_code,
            original_url=created.original_url,
            clicks=created.clicks,
            created_at=created.created_at,
            updated_at=created.updated_at,
        )

    def get_url(self, short_code: str) -> URLRecord:
        """
        Resolve a short code (read-through).

        Raises:
            URLNotFoundError: Unknown code.
            RepositoryUnavailableError: Storage failure on a cache miss.
        """
        cached = self._cache_get(short_code)
        if cached is not None:
            log.debug("cache hit", extra={"short_code": short_code})
            return cached

        record = self.storage.find_by_short_code(short_code)
        self._cache_set(record, "get")
        return record

    def increment_clicks(self, short_code: str) -> URLRecord:
        """
        Count one click atomically in storage, then refresh the cache entry.

        Raises:
            URLNotFoundError: Unknown code.
            RepositoryUnavailableError: Storage failure.
        """
        record = self.storage.increment_clicks(short_code)
        self._cache_set(record, "increment")
        return record

    def invalidate(self, short_code: str) -> None:
        """Drop the cached entry for `short_code` (best effort)."""
        try:
            self.cache.delete(short_code)
        except CacheUnavailableError as e:
            log.warning("cache delete failed", extra={"short_code": short_code, "error": str(e)})

    def health_check(self) -> Dict[str, Any]:
        """
        Report backend health.

        Raises:
            RepositoryUnavailableError: Storage is unreachable.

        Cache failures only show up as `"cache": "unavailable"`.
        """
        self.storage.health_check()
        try:
            self.cache.ping()
            cache_status = "ok"
        except CacheUnavailableError as e:
            log.warning("cache ping failed", extra={"error": str(e)})
            cache_status = "unavailable"
        return {"repository": "ok", "cache": cache_status}

    def close(self) -> None:
        """Release storage and cache resources."""
        self.storage.close()
        self.cache.close()

"""
Error taxonomy for Dove Platform.

Every backend (memory, SQLite, PostgreSQL, Redis) translates its own failure
shapes into the classes below, so the manager and the HTTP layer never inspect
driver-specific exceptions.

Hierarchy:
    DoveError
    ├── ValidationFailedError   per-field validation messages (client error)
    ├── InvalidInputError       empty code/URL at record construction (client error)
    ├── ShortCodeExistsError    short code already taken (client error)
    ├── URLNotFoundError        unknown short code (client error)
    ├── RepositoryUnavailableError  storage unreachable / failed (server error)
    └── CacheUnavailableError   cache unreachable / bad payload (never surfaced)

Example:
    >>> from dove_platform.exceptions import URLNotFoundError
    >>> raise URLNotFoundError("doesnotexist")
    Traceback (most recent call last):
        ...
    dove_platform.exceptions.URLNotFoundError: url not found: doesnotexist
"""

from typing import Dict, Optional

__all__ = [
    "DoveError",
    "ValidationFailedError",
    "InvalidInputError",
    "ShortCodeExistsError",
    "URLNotFoundError",
    "RepositoryUnavailableError",
    "CacheUnavailableError",
]


class DoveError(Exception):
    """Base class for all Dove Platform errors."""


class ValidationFailedError(DoveError, ValueError):
    """Request failed field validation.

    Attributes:
        details (Dict[str, str]): field name -> human readable message.
    """

    def __init__(self, details: Optional[Dict[str, str]] = None):
        self.details: Dict[str, str] = dict(details or {})
        super().__init__("Validation failed")


class InvalidInputError(DoveError, ValueError):
    """Raised when a record is constructed with an empty short code or URL."""


class ShortCodeExistsError(DoveError):
    """Raised when the short code is already taken."""

    def __init__(self, short_code: str = ""):
        self.short_code = short_code
        super().__init__(f"short code already exists: {short_code}" if short_code else "short code already exists")


class URLNotFoundError(DoveError):
    """Raised when no record exists for the short code."""

    def __init__(self, short_code: str = ""):
        self.short_code = short_code
        super().__init__(f"url not found: {short_code}" if short_code else "url not found")


class RepositoryUnavailableError(DoveError):
    """Storage backend failed (connection loss, timeout, unexpected driver error)."""


class CacheUnavailableError(DoveError):
    """Cache failed (connection loss, timeout, (de)serialization error).

    The manager absorbs this error; it never reaches API callers.
    """

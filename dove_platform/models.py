"""
Entity model for Dove Platform.

A single entity exists: the URL record mapping a short code to an original URL
together with its click counter and timestamps.

Record layout:
    URLRecord
    ├─ id: int            (assigned by the backend on create; 0 before that)
    ├─ short_code: str    (unique, [A-Za-z0-9]{3,20})
    ├─ original_url: str  (non-empty redirect target)
    ├─ clicks: int        (>= 0, only ever incremented by 1)
    ├─ created_at: datetime (UTC, immutable)
    └─ updated_at: datetime (UTC, bumped on every mutation)

Records are frozen; backends hand out copies built with `dataclasses.replace`
so callers can never mutate the stored state behind a lock.

Example:
    >>> rec = URLRecord.new("abc123", "https://example.com")
    >>> rec.clicks
    0
    >>> URLRecord.from_dict(rec.to_dict()) == rec
    True
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict

from .exceptions import InvalidInputError

__all__ = ["URLRecord", "parse_timestamp", "utcnow"]


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime or ISO-8601 string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class URLRecord:
    """Represent a shortened URL mapping.

    Attributes:
        short_code (str): Unique short identifier.
        original_url (str): Target of the redirect.
        id (int): Backend identifier, 0 until persisted.
        clicks (int): Number of resolutions so far.
        created_at (datetime): Creation time (UTC).
        updated_at (datetime): Last modification time (UTC).
    """

    short_code: str
    original_url: str
    id: int = 0
    clicks: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, short_code: str, original_url: str) -> "URLRecord":
        """Build a fresh, not yet persisted record.

        Raises:
            InvalidInputError: If the short code or the URL is empty.
        """
        if not short_code:
            raise InvalidInputError("invalid short code")
        if not original_url:
            raise InvalidInputError("invalid url")
        now = utcnow()
        return cls(short_code=short_code, original_url=original_url, clicks=0, created_at=now, updated_at=now)

    def with_click(self, at: datetime) -> "URLRecord":
        """Return a copy with one more click and `updated_at` set to `at`."""
        return replace(self, clicks=self.clicks + 1, updated_at=at)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation (cache payload and API body)."""
        return {
            "id": self.id,
            "shortCode": self.short_code,
            "originalUrl": self.original_url,
            "clicks": self.clicks,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "URLRecord":
        """Inverse of `to_dict`. Raises KeyError/ValueError on malformed input."""
        return cls(
            id=int(data["id"]),
            short_code=str(data["shortCode"]),
            original_url=str(data["originalUrl"]),
            clicks=int(data["clicks"]),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
        )

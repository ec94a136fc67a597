"""
Strategies for short-code generation in dove_platform.

Provided strategies:
- RandomStrategy: Random Base62 of length L drawn from the OS entropy source (default)
- SHA256Strategy: SHA-256(url|nonce|counter) -> Base62 -> truncate to L

Common helpers:
- _base62_encode: Non-negative integer -> Base62 string
- _safe_len: Resolve/normalize desired code length from argument/config (clamped to [3, 20])

Configuration (via dove_platform.config.settings):
- CODE_STRATEGY: "random" (default) or "sha256"
- CODE_LENGTH: Default code length (default 6; clamped 3..20)

Notes:
- Both strategies accept a `counter`. The manager bumps it on every retry after
  a collision: RandomStrategy ignores it (each call is fresh entropy), while
  SHA256Strategy mixes a fresh random nonce into every hash, so shortening
  the same URL again never replays codes handed out earlier.
- Generated codes always match [A-Za-z0-9] and therefore pass the same
  validation as custom codes.
"""

import hashlib
import logging
import random
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Type

from ..config import settings

log = logging.getLogger("dove.manager.strategies")

_BASE62_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
_BASE62_BASE = len(_BASE62_ALPHABET)

MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 20


def _base62_encode(num: int) -> str:
    """
    Convert a non-negative integer to a Base62 string using the global alphabet.
    0 -> "a", 61 -> "9", 62 -> "ba"
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num == 0:
        return _BASE62_ALPHABET[0]
    out = []
    while num > 0:
        num, rem = divmod(num, _BASE62_BASE)
        out.append(_BASE62_ALPHABET[rem])
    return "".join(reversed(out))


def _safe_len(length: Optional[int]) -> int:
    """
    Resolve desired code length from arg or config, clamped to [3, 20].
    """
    L = int(length) if length is not None else int(getattr(settings, "CODE_LENGTH", 6))
    return max(MIN_CODE_LENGTH, min(MAX_CODE_LENGTH, L))


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def generate(self, url: str, *, length: Optional[int] = None, counter: int = 0) -> str:
        """
        Generate a short code for the given URL.
        - length: desired code length
        - counter: retry number (0 on the first attempt)
        """
        raise NotImplementedError


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """
    Random Base62 codes from `random.SystemRandom` (os.urandom), so rapid
    successive calls do not repeat. Uniqueness is still guaranteed only by the
    storage backend; the manager retries on collision.
    """

    def generate(self, url: str, *, length: Optional[int] = None, counter: int = 0) -> str:
        L = _safe_len(length)
        rng = random.SystemRandom()
        return "".join(rng.choice(_BASE62_ALPHABET) for _ in range(L))


@dataclass(frozen=True)
class SHA256Strategy(BaseStrategy):
    """Salted SHA-256 -> Base62 -> truncate strategy."""

    def generate(self, url: str, *, length: Optional[int] = None, counter: int = 0) -> str:
        L = _safe_len(length)
        payload = f"{url}|{secrets.token_hex(8)}|{counter}"
        digest = hashlib.sha256(payload.encode("utf-8")).digest()
        num = int.from_bytes(digest, "big", signed=False)
        return _base62_encode(num)[:L]


# Strategy registry and factory
STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    "random": RandomStrategy,
    "rand": RandomStrategy,
    "sha256": SHA256Strategy,
    "sha-256": SHA256Strategy,
}


def get_strategy_from_config(name: Optional[str] = None) -> BaseStrategy:
    """
    Resolve the active strategy from parameter or settings.CODE_STRATEGY.
    Unknown names fall back to RandomStrategy.
    """
    key = (name or getattr(settings, "CODE_STRATEGY", "random") or "random").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        log.warning("unknown code strategy, using random", extra={"strategy": key})
        cls = RandomStrategy
    log.debug("using code strategy", extra={"strategy": key, "class": cls.__name__})
    return cls()

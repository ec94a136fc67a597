"""
Unit tests for URLManager.

Covers:
    - creation with generated and custom codes
    - per-field validation details
    - collision handling (retry for generated codes, none for custom codes)
    - resolution, click counting and health reporting
"""

import re

import pytest

from dove_platform.cache.noop import NoOpCache
from dove_platform.exceptions import (
    RepositoryUnavailableError,
    ShortCodeExistsError,
    URLNotFoundError,
    ValidationFailedError,
)
from dove_platform.manager.strategies import BaseStrategy, SHA256Strategy
from dove_platform.manager.url_manager import URLManager
from dove_platform.models import URLRecord
from dove_platform.storage.storage import Storage

BASE_URL = "http://short.test"


class ScriptedStrategy(BaseStrategy):
    """Hands out a fixed sequence of codes and records the counters it saw."""

    def __init__(self, codes):
        self.codes = list(codes)
        self.counters = []

    def generate(self, url, *, length=None, counter=0):
        self.counters.append(counter)
        return self.codes.pop(0)


class ExistsBlindStorage(Storage):
    """Storage whose existence probe always misses, as if another writer raced us."""

    def exists(self, short_code):
        return False


class DownStorage(Storage):
    def health_check(self):
        raise RepositoryUnavailableError("database unreachable")


def _manager(storage=None, strategy=None, max_attempts=5):
    return URLManager(
        storage=storage if storage is not None else Storage(),
        cache=NoOpCache(),
        code_strategy=strategy,
        base_url=BASE_URL,
        max_attempts=max_attempts,
    )


# ---------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------

def test_create_generates_six_char_code(manager):
    res = manager.create_short_url("https://example.com")
    assert len(res.short_code) == 6
    assert re.match(r"^[A-Za-z0-9]{6}$", res.short_code)
    assert res.original_url == "https://example.com"
    assert res.short_url == f"{BASE_URL}/{res.short_code}"
    assert res.clicks == 0
    assert res.id > 0


def test_create_with_custom_code(manager):
    res = manager.create_short_url("https://example.com", "myalias")
    assert res.short_code == "myalias"
    assert res.short_url == f"{BASE_URL}/myalias"


def test_custom_code_case_is_preserved(manager):
    manager.create_short_url("https://example.com/a", "MyAlias")
    manager.create_short_url("https://example.com/b", "myalias")
    assert manager.get_url("MyAlias").original_url == "https://example.com/a"
    assert manager.get_url("myalias").original_url == "https://example.com/b"


def test_empty_custom_code_means_generate(manager):
    res = manager.create_short_url("https://example.com", "")
    assert len(res.short_code) == 6


def test_duplicate_custom_code_is_rejected(manager):
    manager.create_short_url("https://example.com", "myalias")
    with pytest.raises(ShortCodeExistsError) as exc:
        manager.create_short_url("https://other.com", "myalias")
    assert exc.value.short_code == "myalias"
    assert manager.get_url("myalias").original_url == "https://example.com"


def test_same_url_twice_gets_two_codes(manager):
    first = manager.create_short_url("https://example.com")
    second = manager.create_short_url("https://example.com")
    assert first.short_code != second.short_code


def test_response_serializes_with_camel_case(manager):
    body = manager.create_short_url("https://example.com", "camel1").model_dump(mode="json", by_alias=True)
    assert set(body) == {"id", "shortUrl", "shortCode", "originalUrl", "clicks", "createdAt", "updatedAt"}


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "alias,fragment",
    [
        ("ab", "at least 3"),
        ("a" * 21, "at most 20"),
        ("bad-alias", "alphanumeric"),
        ("with space", "alphanumeric"),
        ("abc\n", "alphanumeric"),
    ],
)
def test_invalid_custom_code(manager, alias, fragment):
    with pytest.raises(ValidationFailedError) as exc:
        manager.create_short_url("https://example.com", alias)
    assert fragment in exc.value.details["customAlias"]
    assert "url" not in exc.value.details


@pytest.mark.parametrize("alias", ["abc", "a" * 20])
def test_custom_code_length_bounds_are_inclusive(manager, alias):
    assert manager.create_short_url("https://example.com", alias).short_code == alias


@pytest.mark.parametrize("url", [None, "", "not-a-url", "ftp://example.com/file", "https://"])
def test_invalid_url(manager, url):
    with pytest.raises(ValidationFailedError) as exc:
        manager.create_short_url(url)
    assert "url" in exc.value.details


def test_missing_url_message(manager):
    with pytest.raises(ValidationFailedError) as exc:
        manager.create_short_url(None)
    assert exc.value.details["url"] == "url is required"


def test_every_invalid_field_is_reported(manager):
    with pytest.raises(ValidationFailedError) as exc:
        manager.create_short_url("nope", "x!")
    assert set(exc.value.details) == {"url", "customAlias"}


def test_validation_failure_is_a_value_error(manager):
    with pytest.raises(ValueError):
        manager.create_short_url("nope")


def test_nothing_is_stored_on_validation_failure(storage, manager):
    with pytest.raises(ValidationFailedError):
        manager.create_short_url("https://example.com", "ab")
    assert len(storage) == 0


# ---------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------

def test_generated_code_collision_is_retried():
    storage = Storage()
    storage.create(URLRecord.new("taken1", "https://first.example"))
    strategy = ScriptedStrategy(["taken1", "fresh1"])

    res = _manager(storage, strategy).create_short_url("https://second.example")

    assert res.short_code == "fresh1"
    assert strategy.counters == [0, 1]


def test_generated_code_collisions_give_up_after_max_attempts():
    storage = Storage()
    storage.create(URLRecord.new("taken1", "https://first.example"))
    strategy = ScriptedStrategy(["taken1"] * 3)

    with pytest.raises(ShortCodeExistsError):
        _manager(storage, strategy, max_attempts=3).create_short_url("https://second.example")
    assert strategy.counters == [0, 1, 2]


def test_sha256_strategy_handles_repeated_shortening_of_one_url():
    storage = Storage()
    manager = _manager(storage, SHA256Strategy())

    codes = [manager.create_short_url("https://example.com").short_code for _ in range(10)]

    assert len(set(codes)) == 10
    assert len(storage) == 10


def test_custom_code_is_never_retried():
    storage = Storage()
    storage.create(URLRecord.new("mine123", "https://first.example"))
    strategy = ScriptedStrategy(["unused1"])

    with pytest.raises(ShortCodeExistsError):
        _manager(storage, strategy).create_short_url("https://second.example", "mine123")
    assert strategy.counters == []


def test_create_is_the_uniqueness_guard():
    storage = ExistsBlindStorage()
    manager = _manager(storage)
    manager.create_short_url("https://first.example", "race123")
    with pytest.raises(ShortCodeExistsError):
        manager.create_short_url("https://second.example", "race123")
    assert storage.find_by_short_code("race123").original_url == "https://first.example"


# ---------------------------------------------------------------------
# Resolution and clicks
# ---------------------------------------------------------------------

def test_get_url_round_trip(manager):
    created = manager.create_short_url("https://example.com/path?q=1")
    record = manager.get_url(created.short_code)
    assert record.original_url == "https://example.com/path?q=1"
    assert record.id == created.id


def test_get_unknown_code(manager):
    with pytest.raises(URLNotFoundError):
        manager.get_url("nonexistent")


def test_clicks_count_up_one_at_a_time(manager):
    code = manager.create_short_url("https://example.com").short_code
    seen = [manager.increment_clicks(code).clicks for _ in range(7)]
    assert seen == [1, 2, 3, 4, 5, 6, 7]
    assert manager.get_url(code).clicks == 7


def test_increment_unknown_code(manager):
    with pytest.raises(URLNotFoundError):
        manager.increment_clicks("nonexistent")


# ---------------------------------------------------------------------
# Health and lifecycle
# ---------------------------------------------------------------------

def test_health_check_reports_components(manager):
    assert manager.health_check() == {"repository": "ok", "cache": "ok"}


def test_health_check_cache_failure_is_not_fatal(storage, failing_cache):
    manager = URLManager(storage=storage, cache=failing_cache)
    assert manager.health_check() == {"repository": "ok", "cache": "unavailable"}


def test_health_check_storage_failure_propagates():
    with pytest.raises(RepositoryUnavailableError):
        _manager(DownStorage()).health_check()


def test_defaults_use_noop_cache():
    manager = URLManager(storage=Storage())
    assert isinstance(manager.cache, NoOpCache)
    assert manager.max_attempts == 5

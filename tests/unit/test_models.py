"""
Unit tests for the URLRecord entity.

Covers:
    - construction rules (empty code / URL rejected, timestamps, clicks)
    - immutability and the click copy helper
    - dict (cache payload) conversion, including naive timestamps
"""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from dove_platform.exceptions import InvalidInputError
from dove_platform.models import URLRecord, parse_timestamp


def test_new_record_defaults():
    rec = URLRecord.new("abc123", "https://example.com")
    assert rec.id == 0
    assert rec.clicks == 0
    assert rec.created_at == rec.updated_at
    assert rec.created_at.tzinfo is not None


@pytest.mark.parametrize("code,url", [("", "https://example.com"), ("abc123", "")])
def test_new_record_rejects_empty_fields(code, url):
    with pytest.raises(InvalidInputError):
        URLRecord.new(code, url)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        URLRecord.new("", "")


def test_record_is_frozen():
    rec = URLRecord.new("abc123", "https://example.com")
    with pytest.raises(dataclasses.FrozenInstanceError):
        rec.clicks = 5  # type: ignore[misc]


def test_with_click_returns_incremented_copy():
    rec = URLRecord.new("abc123", "https://example.com")
    later = rec.created_at + timedelta(seconds=3)
    bumped = rec.with_click(later)
    assert bumped.clicks == 1
    assert bumped.updated_at == later
    assert bumped.created_at == rec.created_at
    assert rec.clicks == 0


def test_dict_conversion_uses_camel_case_keys():
    rec = URLRecord.new("abc123", "https://example.com")
    data = rec.to_dict()
    assert set(data) == {"id", "shortCode", "originalUrl", "clicks", "createdAt", "updatedAt"}
    assert URLRecord.from_dict(data) == rec


def test_from_dict_treats_naive_timestamps_as_utc():
    data = {
        "id": 4,
        "shortCode": "abc123",
        "originalUrl": "https://example.com",
        "clicks": 2,
        "createdAt": "2024-01-31T12:00:00",
        "updatedAt": "2024-01-31T12:05:00",
    }
    rec = URLRecord.from_dict(data)
    assert rec.created_at == datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)
    assert rec.clicks == 2


def test_from_dict_missing_key_raises():
    with pytest.raises(KeyError):
        URLRecord.from_dict({"id": 1})


def test_parse_timestamp_keeps_aware_datetimes():
    ts = datetime(2024, 5, 1, tzinfo=timezone(timedelta(hours=2)))
    assert parse_timestamp(ts) is ts

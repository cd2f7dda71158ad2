"""Tests for the TTL disk cache."""

import json
import os
import time

import pytest

from cardtrader_sales_tracker.api.cache import CacheEntry, DiskCache


def age_file(path, seconds: float) -> None:
    """Push a file's mtime into the past."""
    past = time.time() - seconds
    os.utime(path, (past, past))


def test_cache_entry_expiry():
    entry = CacheEntry("value", ttl=10, created_at=100.0)

    assert not entry.is_expired(now=105.0)
    assert entry.is_expired(now=111.0)


def test_set_then_get(tmp_path):
    cache = DiskCache(tmp_path / "cache")

    cache.set("expansions", [{"id": 1}])

    assert cache.get("expansions", ttl=60) == [{"id": 1}]
    assert json.loads((tmp_path / "cache" / "expansions.json").read_text()) == [{"id": 1}]


def test_missing_key_is_a_miss(tmp_path):
    assert DiskCache(tmp_path).get("orders_all", ttl=60) is None


def test_stale_entry_is_a_miss(tmp_path):
    """Freshness comes from the file's modification time."""
    cache = DiskCache(tmp_path)
    cache.set("orders_all", [1, 2, 3])

    age_file(tmp_path / "orders_all.json", 7200)

    assert cache.get("orders_all", ttl=3600) is None
    assert cache.get("orders_all", ttl=3 * 3600) == [1, 2, 3]


def test_corrupt_file_is_a_miss(tmp_path):
    (tmp_path / "categories.json").write_text("{not json", encoding="utf-8")

    assert DiskCache(tmp_path).get("categories", ttl=60) is None


def test_get_or_fetch_uses_fresh_cache(tmp_path):
    cache = DiskCache(tmp_path)
    calls = []

    def fetch():
        calls.append(1)
        return ["fresh"]

    assert cache.get_or_fetch("categories", 60, fetch) == ["fresh"]
    assert cache.get_or_fetch("categories", 60, fetch) == ["fresh"]
    assert len(calls) == 1


def test_get_or_fetch_refetches_stale_entry(tmp_path):
    cache = DiskCache(tmp_path)
    cache.set("categories", ["old"])
    age_file(tmp_path / "categories.json", 120)

    assert cache.get_or_fetch("categories", 60, lambda: ["new"]) == ["new"]
    assert cache.get("categories", ttl=60) == ["new"]


def test_get_or_fetch_propagates_fetch_errors(tmp_path):
    cache = DiskCache(tmp_path)

    def fetch():
        raise RuntimeError("offline")

    with pytest.raises(RuntimeError, match="offline"):
        cache.get_or_fetch("orders_all", 60, fetch)

    assert not (tmp_path / "orders_all.json").exists()


def test_unserializable_value_is_not_written(tmp_path):
    cache = DiskCache(tmp_path)

    cache.set("bad", {"value": object()})

    assert not (tmp_path / "bad.json").exists()
    assert list(tmp_path.iterdir()) == []


def test_key_is_sanitized(tmp_path):
    cache = DiskCache(tmp_path)

    cache.set("../escape", [1])

    assert (tmp_path / ".._escape.json").exists()
    assert cache.get("../escape", ttl=60) == [1]


def test_clear(tmp_path):
    cache = DiskCache(tmp_path / "cache")
    assert cache.clear() == 0

    cache.set("categories", [])
    cache.set("expansions", [])

    assert cache.clear() == 2
    assert cache.get("categories", ttl=60) is None

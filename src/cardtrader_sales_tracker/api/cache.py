"""TTL-based on-disk caching for API payloads."""

import json
import logging
import os
import re
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    value : Any
        Cached value
    ttl : float
        Time-to-live in seconds
    created_at : float | None
        Creation timestamp. Uses current time if None.

    """

    def __init__(self, value: Any, ttl: float, created_at: float | None = None) -> None:
        self.value = value
        self.ttl = ttl
        self.created_at = created_at or time.time()

    def is_expired(self, now: float | None = None) -> bool:
        """
        Check if cache entry has expired.

        Parameters
        ----------
        now : float | None
            Reference timestamp. Uses current time if None.

        Returns
        -------
        bool
            True if expired, False otherwise

        """
        now = time.time() if now is None else now
        return (now - self.created_at) > self.ttl


class DiskCache:
    """
    JSON file cache keyed by name, with freshness taken from file mtime.

    Other processes may share the directory. Writes go through a temporary
    file and an atomic rename, so the worst outcome of a race is a duplicate
    fetch that overwrites an equally fresh file.

    Parameters
    ----------
    cache_dir : Path | str
        Directory holding cached payloads. Created on first write.

    """

    def __init__(self, cache_dir: Path | str) -> None:
        self.cache_dir = Path(cache_dir)

    def _path(self, key: str) -> Path:
        """
        Map a cache key to its file.

        Parameters
        ----------
        key : str
            Cache key (e.g., 'expansions', 'orders_all')

        Returns
        -------
        Path
            JSON file for the key

        """
        return self.cache_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def load(self, key: str) -> CacheEntry | None:
        """
        Read an entry regardless of age.

        Parameters
        ----------
        key : str
            Cache key

        Returns
        -------
        CacheEntry | None
            Entry with TTL 0, or None if missing or unreadable

        """
        path = self._path(key)
        try:
            created_at = path.stat().st_mtime
            with open(path, encoding="utf-8") as f:
                value = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable cache file %s: %s", path, e)
            return None
        return CacheEntry(value, ttl=0, created_at=created_at)

    def get(self, key: str, ttl: float) -> Any | None:
        """
        Get cached value if it exists and is younger than ttl.

        Parameters
        ----------
        key : str
            Cache key
        ttl : float
            Maximum age in seconds

        Returns
        -------
        Any | None
            Cached value if found and fresh, None otherwise

        """
        entry = self.load(key)
        if entry is None:
            return None
        entry.ttl = ttl
        if entry.is_expired():
            logger.debug("Cache entry %s is stale", key)
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """
        Persist a value. Failures are logged and otherwise ignored.

        Parameters
        ----------
        key : str
            Cache key
        value : Any
            JSON-serializable value

        """
        path = self._path(key)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not write cache file %s: %s", path, e)

    def get_or_fetch(self, key: str, ttl: float, fetch: Callable[[], Any]) -> Any:
        """
        Return the cached value if fresh, otherwise fetch, persist, and return it.

        Parameters
        ----------
        key : str
            Cache key
        ttl : float
            Maximum age in seconds
        fetch : Callable[[], Any]
            Producer of a fresh value. Its exceptions propagate.

        Returns
        -------
        Any
            Cached or freshly fetched value

        """
        cached = self.get(key, ttl)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s, fetching", key)
        value = fetch()
        self.set(key, value)
        return value

    def clear(self) -> int:
        """
        Remove all cached payloads.

        Returns
        -------
        int
            Number of files removed

        """
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Could not remove cache file %s: %s", path, e)
        return removed

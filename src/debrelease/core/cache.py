from __future__ import annotations

"""
Lookup result cache for debrelease.

This module memoizes expensive computations (e.g., scanning a multi-megabyte
Packages index for one package) on disk, keyed by an explicit cache key and
expired by a TTL.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""

    total_files: int
    total_size_bytes: int
    oldest_file_age_hours: float | None
    newest_file_age_hours: float | None


class ResultCache:
    """Time-bounded memoization of JSON-serializable values.

    Cache structure: {cache_path}/{namespace}/{sha256(key)}.json
    - One file per (namespace, key), holding the key and the computed value
    - Entries older than the TTL passed to get_or_compute() are recomputed
    - A cached None is a hit, so "not found" answers are memoized as well
    """

    def __init__(self, cache_path: Path | None, enabled: bool = True):
        """Initialize result cache.

        Args:
            cache_path: Directory for cache storage (None = disabled)
            enabled: Whether memoization is enabled
        """
        self.cache_path = cache_path
        self.enabled = enabled and cache_path is not None

    def _entry_path(self, namespace: str, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_path / namespace / f"{digest}.json"

    def get_or_compute(
        self,
        namespace: str,
        key: str,
        ttl_minutes: int,
        compute: Callable[[], Any],
    ) -> Any:
        """Return the cached value for key, computing and storing it on a miss.

        Args:
            namespace: Cache namespace (subdirectory)
            key: Cache key within the namespace
            ttl_minutes: Maximum age of a cached value
            compute: Zero-argument callable producing a JSON-serializable value

        Returns:
            Cached or freshly computed value
        """
        if not self.enabled or not self.cache_path:
            return compute()

        entry_path = self._entry_path(namespace, key)
        cached = self._read(entry_path, key, ttl_minutes)
        if cached is not None:
            logger.debug(f"Cache hit for {namespace}: {key}")
            return cached["value"]

        logger.debug(f"Cache miss for {namespace}: {key}")
        value = compute()
        self._write(entry_path, key, value)
        return value

    def _read(self, entry_path: Path, key: str, ttl_minutes: int) -> dict | None:
        if not entry_path.exists():
            return None

        if not self.is_valid(entry_path, ttl_minutes):
            logger.debug(f"Cache entry expired: {entry_path.name}")
            entry_path.unlink(missing_ok=True)
            return None

        try:
            entry = json.loads(entry_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable cache entry {entry_path}: {e}")
            entry_path.unlink(missing_ok=True)
            return None

        # Hash collisions are not expected, but never serve another key's value
        if not isinstance(entry, dict) or entry.get("key") != key:
            return None
        return entry

    def _write(self, entry_path: Path, key: str, value: Any) -> None:
        entry_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to cache (atomic via temp file + rename)
        temp_file = entry_path.with_suffix(".tmp")
        try:
            temp_file.write_text(json.dumps({"key": key, "value": value}), encoding="utf-8")
            temp_file.replace(entry_path)
        except OSError as e:
            logger.warning(f"Failed to write cache entry {entry_path}: {e}")
        finally:
            temp_file.unlink(missing_ok=True)

    def is_valid(self, file_path: Path, ttl_minutes: int) -> bool:
        """Check if a cache entry is younger than ttl_minutes.

        Args:
            file_path: Path to cached entry
            ttl_minutes: Maximum age in minutes

        Returns:
            True if entry is valid, False if expired
        """
        age_seconds = time.time() - file_path.stat().st_mtime
        return age_seconds <= ttl_minutes * 60

    def entries(self) -> list[Path]:
        """List all cache entry files across namespaces."""
        if not self.cache_path or not self.cache_path.exists():
            return []
        return [p for p in self.cache_path.glob("*/*.json") if p.is_file()]

    def clear(self, namespace: str | None = None) -> int:
        """Clear cache entries.

        Args:
            namespace: Only clear this namespace (None = everything)

        Returns:
            Number of entries deleted
        """
        files_deleted = 0
        for entry_path in self.entries():
            if namespace and entry_path.parent.name != namespace:
                continue
            entry_path.unlink()
            files_deleted += 1

        logger.info(f"Cleared {files_deleted} cached lookup result(s)")
        return files_deleted

    def stats(self) -> CacheStats:
        """Get cache statistics.

        Returns:
            CacheStats with cache information
        """
        return collect_stats(self.entries())


def collect_stats(files: list[Path]) -> CacheStats:
    """Summarize count, size and age of a set of cache files."""
    total_files = 0
    total_size_bytes = 0
    oldest_mtime: float | None = None
    newest_mtime: float | None = None

    for cache_file in files:
        stat = cache_file.stat()
        total_files += 1
        total_size_bytes += stat.st_size

        if oldest_mtime is None or stat.st_mtime < oldest_mtime:
            oldest_mtime = stat.st_mtime
        if newest_mtime is None or stat.st_mtime > newest_mtime:
            newest_mtime = stat.st_mtime

    now = time.time()
    oldest_age = (now - oldest_mtime) / 3600 if oldest_mtime is not None else None
    newest_age = (now - newest_mtime) / 3600 if newest_mtime is not None else None

    return CacheStats(
        total_files=total_files,
        total_size_bytes=total_size_bytes,
        oldest_file_age_hours=oldest_age,
        newest_file_age_hours=newest_age,
    )

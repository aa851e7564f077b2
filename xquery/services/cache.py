"""
TtlCache - In-memory cache with per-entry time-to-live.

Features:
- Lazy expiration: an entry is dropped by the first get() after it expires,
  there is no background sweep
- Overwriting a key computes a fresh expiry
- PersistentTtlCache mirrors the store to a JSON file after every write and
  rehydrates it on construction without extending any TTL

Keys are expected to come from a small, known set (category/country/username
combinations), so memory held by dead entries is bounded in practice.
"""

import json
import os
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Generic, Hashable, TypeVar

from loguru import logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A single cache entry."""

    value: V
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def make_key(*parts: Any) -> str:
    """Build a normalized composite key, e.g. make_key("Tech", None) -> "tech:"."""
    return ":".join("" if p is None else str(p).strip().lower() for p in parts)


class TtlCache(Generic[K, V]):
    """
    In-memory TTL cache.

    Usage:
        cache: TtlCache[str, dict] = TtlCache(ttl=timedelta(minutes=5))

        hit = cache.get(key)
        if hit is None:
            hit = await fetch()
            cache.set(key, hit)
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], float] = time.time,
        debug: bool = False,
    ):
        self._ttl = ttl.total_seconds()
        self._clock = clock
        self._debug = debug
        self._store: dict[K, CacheEntry[V]] = {}

    def get(self, key: K) -> V | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._store.get(key)
        if entry is None:
            self._log(f"MISS: {key}")
            return None

        if entry.is_expired(self._clock()):
            del self._store[key]
            self._log(f"EXPIRED: {key}")
            return None

        self._log(f"HIT: {key}")
        return entry.value

    def set(self, key: K, value: V) -> None:
        """Store value; its expiry is always now + ttl."""
        self._store[key] = CacheEntry(value=value, expires_at=self._clock() + self._ttl)
        self._log(f"SET: {key} (TTL: {self._ttl}s)")

    def delete(self, key: K) -> bool:
        """Delete a specific key from cache."""
        if key in self._store:
            del self._store[key]
            self._log(f"DELETE: {key}")
            return True
        return False

    def clear(self) -> None:
        """Clear all cache entries."""
        count = len(self._store)
        self._store.clear()
        self._log(f"CLEAR: {count} entries removed")

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._store)

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[{type(self).__name__}] {message}")


class PersistentTtlCache(TtlCache[str, V]):
    """
    TTL cache backed by a JSON file so entries survive process restarts.

    File format: {"<key>": {"value": <json>, "expiresAt": <epoch ms>}}

    Every file operation is best effort. A missing directory, a permission
    problem or a corrupt file only costs durability; the instance keeps
    working as an in-memory cache.
    """

    def __init__(
        self,
        ttl: timedelta,
        file_path: str | os.PathLike[str],
        clock: Callable[[], float] = time.time,
        debug: bool = False,
    ):
        super().__init__(ttl, clock=clock, debug=debug)
        self._file_path = Path(file_path)
        self._load()

    def set(self, key: str, value: V) -> None:
        super().set(key, value)
        self._save()

    def delete(self, key: str) -> bool:
        removed = super().delete(key)
        if removed:
            self._save()
        return removed

    def clear(self) -> None:
        super().clear()
        try:
            self._file_path.unlink()
        except OSError as e:
            logger.debug(f"Cache file {self._file_path} not removed: {e}")

    def _load(self) -> bool:
        """Hydrate from disk, skipping expired entries and keeping original expiry."""
        try:
            raw = self._file_path.read_text(encoding="utf-8")
            stored = json.loads(raw)
            if not isinstance(stored, dict):
                raise ValueError("cache file root is not an object")
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable cache file {self._file_path}: {e}")
            return False

        now = self._clock()
        loaded = 0
        for key, record in stored.items():
            try:
                expires_at = float(record["expiresAt"]) / 1000
                value = record["value"]
            except (TypeError, KeyError, ValueError):
                continue
            if expires_at > now:
                self._store[key] = CacheEntry(value=value, expires_at=expires_at)
                loaded += 1

        self._log(f"LOAD: {loaded} entries from {self._file_path}")
        return True

    def _save(self) -> bool:
        """Rewrite the whole store to disk."""
        payload = {
            key: {"value": entry.value, "expiresAt": int(entry.expires_at * 1000)}
            for key, entry in self._store.items()
        }
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(payload), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Cache file {self._file_path} not written: {e}")
            return False
        return True

# src/tierstore/storage/tiers/cache.py
"""
Cache Tier - In-memory record storage with TTL.

This module provides the fastest, volatile tier. It is made of two parts:

- :class:`VolatileRecordStore`, a thread-safe in-memory map of records with
  absolute TTL expiration, item-count LRU eviction and statistics. The store
  is process-wide shared state, so every operation holds an ``RLock``.
- :class:`CacheStorageProvider`, the async provider adapter that exposes the
  store through the uniform provider contract.

The store is constructed explicitly and injected into the provider; the
hosting process owns its lifecycle (there is no module-level singleton).
Records are copied on the way in and on the way out so that callers never
mutate a cached record behind the store's back.

Usage:
    store = VolatileRecordStore(max_items=10000, default_ttl_seconds=600)
    provider = CacheStorageProvider(store=store)

    await provider.save(record)
    cached = await provider.get(record.id)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...config.models import CacheTierConfig
from ...models import Record, StorageTier
from ..base_provider import BaseStorageProvider

logger = logging.getLogger(__name__)


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class CachedEntry:
    """A record held in memory together with its bookkeeping.

    Attributes:
        record: Private copy of the stored record.
        stored_at: Unix timestamp when the entry was written.
        expires_at: Unix timestamp when the entry expires (None = never).
        last_accessed: Unix timestamp of last read, used for LRU eviction.
        access_count: Number of reads served from this entry.
    """

    record: Record
    stored_at: float = field(default_factory=time.time)
    expires_at: float | None = None
    last_accessed: float = field(default_factory=time.time)
    access_count: int = 0

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) > self.expires_at

    def touch(self) -> None:
        self.last_accessed = time.time()
        self.access_count += 1


# =============================================================================
# VOLATILE RECORD STORE
# =============================================================================


class VolatileRecordStore:
    """Thread-safe in-memory record map with TTL and LRU eviction.

    Expired entries are removed lazily on access and by a periodic sweep that
    piggybacks on regular operations, so no background thread is needed.

    Attributes:
        max_items: Maximum number of records (0 = unlimited).
        default_ttl_seconds: Absolute lifetime of an entry (None = no expiry).
        cleanup_interval: Seconds between sweeps of expired entries.
    """

    def __init__(
        self,
        max_items: int = 10000,
        default_ttl_seconds: float | None = 600,
        cleanup_interval_seconds: float = 60,
    ) -> None:
        self.max_items = max_items
        self.default_ttl_seconds = default_ttl_seconds
        self.cleanup_interval = cleanup_interval_seconds

        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.RLock()
        self._last_cleanup: float = time.time()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "evictions": 0,
            "expirations": 0,
        }

        logger.debug(
            f"VolatileRecordStore initialized: max_items={max_items}, "
            f"default_ttl={default_ttl_seconds}s"
        )

    @classmethod
    def from_config(cls, config: CacheTierConfig) -> "VolatileRecordStore":
        return cls(
            max_items=config.max_items,
            default_ttl_seconds=config.default_ttl_seconds,
            cleanup_interval_seconds=config.cleanup_interval_seconds,
        )

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _maybe_cleanup(self) -> None:
        if time.time() - self._last_cleanup > self.cleanup_interval:
            self._cleanup_expired()
            self._last_cleanup = time.time()

    def _cleanup_expired(self) -> int:
        now = time.time()
        expired = [k for k, v in self._entries.items() if v.is_expired(now)]
        for key in expired:
            del self._entries[key]
            self._stats["expirations"] += 1
        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def _evict_lru(self) -> int:
        """Evict the least recently used tenth of the entries (at least one)."""
        if not self._entries:
            return 0
        by_age = sorted(self._entries.items(), key=lambda kv: kv[1].last_accessed)
        to_evict = max(1, len(self._entries) // 10)
        for key, _ in by_age[:to_evict]:
            del self._entries[key]
            self._stats["evictions"] += 1
        logger.debug(f"Evicted {to_evict} LRU cache entries")
        return to_evict

    def _live_entry(self, record_id: str) -> Optional[CachedEntry]:
        entry = self._entries.get(record_id)
        if entry is not None and entry.is_expired():
            del self._entries[record_id]
            self._stats["expirations"] += 1
            return None
        return entry

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get(self, record_id: str) -> Optional[Record]:
        """Return a copy of the record, or None if absent or expired."""
        with self._lock:
            self._maybe_cleanup()
            entry = self._live_entry(record_id)
            if entry is None:
                self._stats["misses"] += 1
                return None
            entry.touch()
            self._stats["hits"] += 1
            return entry.record.model_copy()

    def put(self, record: Record, ttl_seconds: float | None = None) -> None:
        """Store a copy of the record, replacing any existing entry.

        Args:
            record: The record to store.
            ttl_seconds: TTL override (None uses the default, 0 means no expiry).
        """
        with self._lock:
            self._maybe_cleanup()
            if self.max_items > 0 and record.id not in self._entries and len(self._entries) >= self.max_items:
                self._evict_lru()

            if ttl_seconds is None:
                ttl = self.default_ttl_seconds
            elif ttl_seconds == 0:
                ttl = None
            else:
                ttl = ttl_seconds

            now = time.time()
            self._entries[record.id] = CachedEntry(
                record=record.model_copy(),
                stored_at=now,
                expires_at=now + ttl if ttl else None,
                last_accessed=now,
            )
            self._stats["sets"] += 1

    def replace_if_present(self, record: Record) -> bool:
        """Overwrite an existing live entry. Returns False if there is none."""
        with self._lock:
            if self._live_entry(record.id) is None:
                return False
            self.put(record)
            return True

    def remove(self, record_id: str) -> bool:
        """Remove an entry. Returns True if something was removed."""
        with self._lock:
            if self._entries.pop(record_id, None) is not None:
                self._stats["deletes"] += 1
                return True
            return False

    def contains(self, record_id: str) -> bool:
        with self._lock:
            return self._live_entry(record_id) is not None

    def ids(self) -> List[str]:
        with self._lock:
            now = time.time()
            return [k for k, v in self._entries.items() if not v.is_expired(now)]

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            logger.debug(f"Cleared {count} entries from the cache tier")
            return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                "item_count": len(self._entries),
                "max_items": self.max_items,
                "default_ttl_seconds": self.default_ttl_seconds,
                "hit_rate": self._stats["hits"] / total if total > 0 else 0.0,
                **self._stats,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, record_id: str) -> bool:
        return self.contains(record_id)


# =============================================================================
# PROVIDER ADAPTER
# =============================================================================


class CacheStorageProvider(BaseStorageProvider):
    """Storage provider for the in-memory cache tier.

    Args:
        store: The shared record store. A private store is created when omitted.
        config: Used to build the private store when ``store`` is omitted.
    """

    tier = StorageTier.CACHE.value

    def __init__(
        self,
        store: VolatileRecordStore | None = None,
        config: CacheTierConfig | None = None,
    ) -> None:
        self._owns_store = store is None
        if store is None:
            store = VolatileRecordStore.from_config(config or CacheTierConfig())
        self._store = store

    @property
    def store(self) -> VolatileRecordStore:
        return self._store

    async def get(self, record_id: str) -> Optional[Record]:
        return self._store.get(self._require_id(record_id))

    async def save(self, record: Record) -> bool:
        self._store.put(self._require_record(record))
        return True

    async def update(self, record: Record) -> bool:
        return self._store.replace_if_present(self._require_record(record))

    async def delete(self, record_id: str) -> bool:
        self._store.remove(self._require_id(record_id))
        return True

    async def close(self) -> None:
        if self._owns_store:
            self._store.clear()

    def stats(self) -> Dict[str, Any]:
        return self._store.stats()


def create_cache_provider(config: CacheTierConfig | None = None) -> CacheStorageProvider:
    """Create a CacheStorageProvider backed by a fresh store built from config."""
    return CacheStorageProvider(config=config)


__all__ = [
    "CachedEntry",
    "VolatileRecordStore",
    "CacheStorageProvider",
    "create_cache_provider",
]

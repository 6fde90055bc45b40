"""
In-memory TTL cache for data fetched from external platforms.

Entries carry the source that produced them, so they can be reported on and
cleared per source. Expiration is both lazy (on read) and active (periodic
``cleanup()`` sweep run by the scheduler). When the store is full, one entry
is evicted before a new key is inserted: the oldest by insertion time, or the
least recently read one when the store is built with ``eviction_policy="lru"``.
"""
import json
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from yieldlens.services.cache.single_flight import SingleFlight

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60
MAX_CACHE_SIZE = 1000
CLEANUP_INTERVAL_SECONDS = 5 * 60

EVICTION_POLICIES = ("fifo", "lru")


def _to_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def estimate_size(data: Any) -> int:
    """Approximate serialized size of a payload in bytes."""
    try:
        return len(json.dumps(data).encode("utf-8"))
    except (TypeError, ValueError):
        # Not JSON-serializable: assume two bytes per character of its repr
        return len(repr(data)) * 2


def format_bytes(size: int) -> str:
    """Format bytes to a human readable string."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    return f"{round(size / 1024 ** i, 2):g} {units[i]}"


@dataclass
class CacheEntry:
    """A cached payload with its bookkeeping."""
    key: str
    data: Any
    source: str
    created_at: float
    ttl: float  # seconds
    size_bytes: int
    hit_count: int = 0
    last_accessed_at: float = 0.0

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def snapshot(self, now: float, include_data: bool = True) -> Dict[str, Any]:
        """Plain-dict view for admin tooling, with expiry computed at ``now``."""
        time_to_expire = self.expires_at - now
        result = {
            "key": self.key,
            "source": self.source,
            "created_at": _to_datetime(self.created_at),
            "ttl_seconds": self.ttl,
            "size_bytes": self.size_bytes,
            "hit_count": self.hit_count,
            "last_accessed_at": _to_datetime(self.last_accessed_at),
            "age_seconds": max(0.0, now - self.created_at),
            "time_to_expire": max(0.0, time_to_expire),
            "expired": time_to_expire <= 0,
        }
        if include_data:
            result["data"] = self.data
        return result


class CacheService:
    """Thread-safe in-memory TTL cache with per-entry source tags and statistics.

    One instance is shared by the whole process; it is built at startup and
    handed to the scheduler and the routers through the application context.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = MAX_CACHE_SIZE,
        eviction_policy: str = "fifo",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when ``set`` gets none
            max_size: Maximum number of entries before eviction kicks in
            eviction_policy: "fifo" (oldest insert first) or "lru" (oldest read first)
            clock: Returns the current time in epoch seconds
        """
        if eviction_policy not in EVICTION_POLICIES:
            raise ValueError(f"Unsupported eviction policy: {eviction_policy}. Supported: {list(EVICTION_POLICIES)}")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.default_ttl = default_ttl
        self.max_size = max_size
        self.eviction_policy = eviction_policy
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, CacheEntry] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "cleanups": 0,
        }
        self._single_flight = SingleFlight()

    # Writes

    def set(self, key: str, data: Any, source: str, ttl: Optional[float] = None) -> None:
        """Store data under ``key``, tagged with the source that produced it.

        Args:
            key: Cache key, usually built with ``generate_key``
            data: Payload (any value; JSON-serializable ones get exact sizes)
            source: Adapter/service that produced the data
            ttl: Seconds to live; defaults to the store's default TTL
        """
        ttl = self.default_ttl if ttl is None else ttl
        size = estimate_size(data)

        with self._lock:
            now = self._clock()
            if key in self._entries:
                # Replacement, not an eviction
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                self._evict_one()

            self._entries[key] = CacheEntry(
                key=key,
                data=data,
                source=source,
                created_at=now,
                ttl=ttl,
                size_bytes=size,
                last_accessed_at=now,
            )
            self._stats["sets"] += 1

        logger.debug(f"Cached: {key} ({source}) - Size: {format_bytes(size)} - TTL: {round(ttl / 60)}min")

    def delete(self, key: str) -> bool:
        """Remove a specific key. Returns True if it was present."""
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._stats["deletes"] += 1
            return True

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._stats["deletes"] += count
        logger.info(f"Cache cleared: {count} entries removed")
        return count

    def clear_by_source(self, source: str) -> int:
        """Remove every entry produced by ``source``. Returns the number removed."""
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.source == source]
            for key in keys:
                del self._entries[key]
            self._stats["deletes"] += len(keys)
        logger.info(f"Cache cleared for {source}: {len(keys)} entries removed")
        return len(keys)

    def cleanup(self) -> int:
        """Sweep out expired entries. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self._stats["deletes"] += len(expired)
            self._stats["cleanups"] += 1
        if expired:
            logger.info(f"Cache cleanup: {len(expired)} expired entries removed")
        return len(expired)

    # Reads

    def get(self, key: str) -> Optional[Any]:
        """Return the cached data, or None if the key is unknown or expired."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._stats["misses"] += 1
                return None
            entry.hit_count += 1
            entry.last_accessed_at = self._clock()
            self._stats["hits"] += 1
            return entry.data

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss counters or access time."""
        with self._lock:
            return self._live_entry(key) is not None

    def get_entry(self, key: str) -> Optional[Dict[str, Any]]:
        """Snapshot of a live entry with its metadata, or None."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry.snapshot(self._clock())

    async def get_or_fetch(
        self,
        key: str,
        source: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Optional[Any]:
        """Read-through: return the cached value or fetch, cache and return it.

        Concurrent misses for the same key share a single call to ``fetcher``
        and the result is stored once. A ``None`` result is passed back but
        not cached; an exception reaches every waiter and nothing is cached.
        """
        data = self.get(key)
        if data is not None:
            return data

        async def load():
            value = await fetcher()
            if value is not None:
                self.set(key, value, source, ttl)
            return value

        return await self._single_flight.do(key, load)

    # Introspection

    def get_stats(self) -> Dict[str, Any]:
        """Aggregate statistics; rates are percentages over lifetime gets."""
        with self._lock:
            entries = list(self._entries.values())
            stats = dict(self._stats)

        lookups = stats["hits"] + stats["misses"]
        hit_rate = (stats["hits"] / lookups) * 100 if lookups else 0.0
        miss_rate = (stats["misses"] / lookups) * 100 if lookups else 0.0

        return {
            "total_entries": len(entries),
            "total_memory_usage": sum(entry.size_bytes for entry in entries),
            "hit_rate": hit_rate,
            "miss_rate": miss_rate,
            "total_hits": stats["hits"],
            "total_misses": stats["misses"],
            "oldest_entry_at": _to_datetime(min((e.created_at for e in entries), default=None)),
            "newest_entry_at": _to_datetime(max((e.created_at for e in entries), default=None)),
            "sets": stats["sets"],
            "deletes": stats["deletes"],
            "cleanups": stats["cleanups"],
        }

    def get_all_entries(self, include_data: bool = True) -> List[Dict[str, Any]]:
        """Snapshots of all stored entries, newest first.

        Entries past their TTL that nobody has read or swept yet are included
        and flagged ``expired``.
        """
        with self._lock:
            now = self._clock()
            entries = sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)
            return [entry.snapshot(now, include_data) for entry in entries]

    def get_entries_by_source(self, include_data: bool = True) -> Dict[str, List[Dict[str, Any]]]:
        """Snapshots grouped by source tag."""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for entry in self.get_all_entries(include_data):
            grouped.setdefault(entry["source"], []).append(entry)
        return grouped

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def generate_key(type_: str, *params: Any) -> str:
        """Build a cache key like ``pool-details:<id>``."""
        return ":".join([type_, *(str(p) for p in params)])

    # Internals (caller holds the lock)

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._stats["deletes"] += 1
            return None
        return entry

    def _evict_one(self) -> None:
        if not self._entries:
            return
        if self.eviction_policy == "lru":
            victim = min(self._entries.values(), key=lambda e: e.last_accessed_at)
        else:
            victim = min(self._entries.values(), key=lambda e: e.created_at)
        del self._entries[victim.key]
        self._stats["deletes"] += 1
        logger.info(f"Cache evicted {self.eviction_policy} entry: {victim.key} ({victim.source})")

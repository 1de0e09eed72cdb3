import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from app.config import CACHE_CLEANUP_INTERVAL_SECONDS, CACHE_MAX_SIZE, CACHE_TTL_SECONDS
from core.routing.normalizer import normalize_key
from infra.logger import (
    logger_cache,
    log_cache_evict,
    log_cache_expired,
    log_cache_hit,
    log_cache_store,
    log_sweep,
)
from tools.schemas import CacheStats, PreloadPattern, RoutingDecision


# ═══════════════════════════════════════════════════════════════════════════════
# CACHE ENTRY
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class CacheEntry:
    decision: RoutingDecision
    inserted_at: float
    last_accessed_at: float
    access_count: int = 0


# ═══════════════════════════════════════════════════════════════════════════════
# ROUTING DECISION CACHE
# ═══════════════════════════════════════════════════════════════════════════════

class RoutingCache:
    """
    Bounded, time-expiring cache of routing decisions.

    - Keys are normalized utterances (case, whitespace and punctuation insensitive)
    - Lazy TTL expiry on read, eager expiry by a periodic sweep
    - Evicts the least recently accessed entry when full
    - Tracks hits, misses and evictions

    Nothing is persisted; a new instance always starts cold.
    All state changes go through one lock and never span an await.
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        ttl: float = CACHE_TTL_SECONDS,
        cleanup_interval: float = CACHE_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_size: Maximum number of entries
            ttl: Entry lifetime in seconds, measured from insertion
            cleanup_interval: Seconds between background sweeps
            clock: Monotonic time source (seconds)
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self._entries: Dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._ttl = ttl
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

        self._hits = 0
        self._misses = 0
        self._evictions = 0


    def get(self, raw_text: str) -> Optional[RoutingDecision]:
        """
        Returns the cached decision on a fresh hit, else None
        """
        key = normalize_key(raw_text)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            now = self._clock()
            age = now - entry.inserted_at
            if age > self._ttl:
                del self._entries[key]
                self._misses += 1
                log_cache_expired(key, age)
                return None

            entry.last_accessed_at = now
            entry.access_count += 1
            self._hits += 1
            log_cache_hit(key, entry.decision.intent, entry.access_count)
            return entry.decision


    def set(self, raw_text: str, decision: RoutingDecision):
        """
        Store a decision, evicting one entry first if the cache is full
        and the key is new
        """
        key = normalize_key(raw_text)

        with self._lock:
            self._store(key, decision)


    def preload(self, patterns: Iterable[PreloadPattern]):
        """
        Seed common utterances. Hit/miss counters are untouched.
        """
        count = 0
        with self._lock:
            for pattern in patterns:
                self._store(normalize_key(pattern.text), pattern.decision)
                count += 1

        logger_cache.info(f"CACHE_PRELOAD | count={count} | size={len(self._entries)}")


    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / total if total > 0 else 0.0,
                size=len(self._entries),
                evictions=self._evictions,
            )


    def clear(self):
        """Remove all entries and reset counters"""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
        logger_cache.info("CACHE_CLEARED")


    def size(self) -> int:
        with self._lock:
            return len(self._entries)


    def sweep_expired(self) -> int:
        """
        Delete every entry older than the TTL.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if now - entry.inserted_at > self._ttl
            ]
            for key in expired:
                del self._entries[key]
            remaining = len(self._entries)

        log_sweep(logger_cache, len(expired), remaining)
        return len(expired)


    def debug_entries(self) -> List[dict]:
        """Cache contents for debugging, most accessed first"""
        with self._lock:
            now = self._clock()
            entries = [
                {
                    "key": key[:50],
                    "intent": entry.decision.intent,
                    "confidence": entry.decision.confidence,
                    "handler": entry.decision.handler,
                    "age_ms": int((now - entry.inserted_at) * 1000),
                    "access_count": entry.access_count,
                }
                for key, entry in self._entries.items()
            ]

        return sorted(entries, key=lambda e: e["access_count"], reverse=True)


    # ---------- background sweep ----------

    def start(self):
        """Start the periodic TTL sweep on the running event loop"""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger_cache.debug(f"SWEEP_STARTED | interval={self._cleanup_interval}s")


    async def stop(self):
        """Cancel the periodic sweep and wait for it to finish"""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger_cache.debug("SWEEP_STOPPED")


    async def destroy(self):
        await self.stop()
        self.clear()


    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.sweep_expired()


    # ---------- internals (lock held) ----------

    def _store(self, key: str, decision: RoutingDecision):
        if key not in self._entries and len(self._entries) >= self._max_size:
            self._evict_least_recently_used()

        now = self._clock()
        self._entries[key] = CacheEntry(
            decision=decision,
            inserted_at=now,
            last_accessed_at=now,
        )
        log_cache_store(key, decision.intent, len(self._entries))


    def _evict_least_recently_used(self):
        if not self._entries:
            return

        victim = min(self._entries, key=lambda k: self._entries[k].last_accessed_at)
        entry = self._entries.pop(victim)
        self._evictions += 1
        log_cache_evict(victim, self._clock() - entry.last_accessed_at)

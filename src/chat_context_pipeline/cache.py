# chat_context_pipeline/cache.py
"""
Evidence Cache - reuses retrieval results for repeated questions.

Retrieval is the only network-bound stage, so a repeated question with the
same intent and budget can skip it entirely. Entries are keyed by
(intent, max_tokens, normalized query) and expire on a TTL that depends on
the intent and on how good the cached evidence was:

    ttl = default_ttl * intent multiplier
          * 1.5 if mean score > 0.8, * 0.7 if mean score < 0.5
          * 1.3 if the evidence is larger than 2000 tokens

Least recently used entries are evicted once ``max_entries`` is reached.
Empty result lists are never cached.
"""

from __future__ import annotations

import hashlib
import logging
from collections import OrderedDict
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field

from chat_context_pipeline.config import CONTEXT_CACHE_MAX_ENTRIES, CONTEXT_CACHE_TTL_SECONDS
from chat_context_pipeline.models.cache import CacheStats
from chat_context_pipeline.models.chunk import SearchResult
from chat_context_pipeline.models.enums import QueryIntent

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_query(query: str) -> str:
    return " ".join(query.lower().split())


class CacheConfig(BaseModel):
    """TTL adjustment table."""

    intent_ttl_multipliers: dict[QueryIntent, float] = Field(
        default_factory=lambda: {
            QueryIntent.FACTUAL: 2.0,
            QueryIntent.CASUAL: 0.5,
            QueryIntent.EXPLORATION: 1.5,
            QueryIntent.COMPARISON: 1.2,
            QueryIntent.SYNTHESIS: 1.8,
        }
    )
    high_score_threshold: float = Field(default=0.8, description="Mean score above this extends the TTL")
    high_score_multiplier: float = 1.5
    low_score_threshold: float = Field(default=0.5, description="Mean score below this shortens the TTL")
    low_score_multiplier: float = 0.7
    large_context_tokens: int = Field(default=2000, description="Evidence larger than this extends the TTL")
    large_context_multiplier: float = 1.3


class CacheEntry(BaseModel):
    """Internal cache entry."""

    results: list[SearchResult]
    intent: QueryIntent
    stored_at: datetime
    expires_at: datetime
    access_count: int = 0


class ContextCache:
    """LRU cache of retrieval results with intent- and quality-aware TTLs."""

    def __init__(
        self,
        max_entries: int = CONTEXT_CACHE_MAX_ENTRIES,
        default_ttl: float = CONTEXT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        config: CacheConfig | None = None,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.clock = clock
        self.config = config or CacheConfig()
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
            "invalidations": 0,
        }

    @staticmethod
    def make_key(query: str, intent: QueryIntent, max_tokens: int) -> str:
        key_str = f"{QueryIntent(intent).value}:{max_tokens}:{normalize_query(query)}"
        return hashlib.sha256(key_str.encode()).hexdigest()

    def ttl_for(self, intent: QueryIntent, results: list[SearchResult]) -> float:
        """TTL in seconds for caching ``results`` under ``intent``."""
        cfg = self.config
        ttl = self.default_ttl * cfg.intent_ttl_multipliers.get(intent, 1.0)
        if results:
            mean_score = sum(r.score for r in results) / len(results)
            if mean_score > cfg.high_score_threshold:
                ttl *= cfg.high_score_multiplier
            elif mean_score < cfg.low_score_threshold:
                ttl *= cfg.low_score_multiplier
            if sum(r.tokens for r in results) > cfg.large_context_tokens:
                ttl *= cfg.large_context_multiplier
        return ttl

    def get(self, query: str, intent: QueryIntent, max_tokens: int) -> list[SearchResult] | None:
        """Cached results, or None on a miss or an expired entry."""
        key = self.make_key(query, intent, max_tokens)
        entry = self._cache.get(key)

        if entry is None:
            self._stats["misses"] += 1
            return None

        if self.clock() >= entry.expires_at:
            del self._cache[key]
            self._stats["expirations"] += 1
            self._stats["misses"] += 1
            return None

        self._cache.move_to_end(key)
        entry.access_count += 1
        self._stats["hits"] += 1
        return list(entry.results)

    def put(self, query: str, intent: QueryIntent, max_tokens: int, results: list[SearchResult]) -> bool:
        """Store results; returns False (and stores nothing) for an empty list."""
        if not results:
            return False

        key = self.make_key(query, intent, max_tokens)
        self._cache.pop(key, None)
        while len(self._cache) >= self.max_entries:
            self._cache.popitem(last=False)
            self._stats["evictions"] += 1

        now = self.clock()
        ttl = self.ttl_for(intent, results)
        self._cache[key] = CacheEntry(
            results=list(results),
            intent=intent,
            stored_at=now,
            expires_at=now + timedelta(seconds=ttl),
        )
        logger.debug("Cached %d results for %s query (ttl %.0fs)", len(results), QueryIntent(intent).value, ttl)
        return True

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self.clock()
        expired = [key for key, entry in self._cache.items() if now >= entry.expires_at]
        for key in expired:
            del self._cache[key]
        self._stats["expirations"] += len(expired)
        return len(expired)

    def invalidate_all(self) -> int:
        """Clear the entire cache. Returns the number of entries removed."""
        count = len(self._cache)
        self._cache.clear()
        self._stats["invalidations"] += count
        return count

    @property
    def size(self) -> int:
        return len(self._cache)

    def get_stats(self) -> CacheStats:
        return CacheStats(
            hits=self._stats["hits"],
            misses=self._stats["misses"],
            evictions=self._stats["evictions"],
            expirations=self._stats["expirations"],
            invalidations=self._stats["invalidations"],
            size=len(self._cache),
            max_size=self.max_entries,
        )

# chat_context_pipeline/models/cache.py
"""Evidence cache statistics."""

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Counters for the evidence cache."""

    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0, description="Entries dropped to stay within max_entries")
    expirations: int = Field(default=0, ge=0, description="Entries dropped because their TTL ran out")
    invalidations: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    max_size: int = Field(default=0, ge=0)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

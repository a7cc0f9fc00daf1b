# chat_context_pipeline/models/chunk.py
"""Corpus chunk and search result models."""

from __future__ import annotations

import math
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from chat_context_pipeline.config import CHARS_PER_TOKEN
from chat_context_pipeline.models.enums import RetrievalStage


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def estimate_tokens(text: str) -> int:
    """Rough token count for text (~4 chars per token)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN) if text else 0


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 1]; NaN becomes 0."""
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, float(value)))


class ChunkMetadata(BaseModel):
    """Metadata attached to a chunk by the ingestion job."""

    content_type: str = Field(default="", description="work, experiment, timeline, leadership, contact, ...")
    content_id: str = Field(default="", description="Identifier of the source content item")
    tags: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    date: datetime | None = Field(default=None)
    featured: bool = Field(default=False)

    @field_validator("date")
    @classmethod
    def _utc_date(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Chunk(BaseModel):
    """A unit of corpus text with its embedding. Read-only to this library."""

    id: str
    text: str
    embedding: list[float] = Field(default_factory=list)
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    tokens: int | None = Field(default=None, ge=0, description="Token count; estimated from text when omitted")

    @model_validator(mode="after")
    def _fill_tokens(self) -> Chunk:
        if self.tokens is None:
            self.tokens = estimate_tokens(self.text)
        return self

    @property
    def token_count(self) -> int:
        return self.tokens or 0


class SearchResult(BaseModel):
    """A chunk paired with its similarity (or boosted) score."""

    chunk: Chunk
    score: float = Field(..., ge=0.0, le=1.0)

    @property
    def tokens(self) -> int:
        return self.chunk.token_count

    def with_score(self, score: float) -> SearchResult:
        return SearchResult(chunk=self.chunk, score=clamp_score(score))


class DateRange(BaseModel):
    """Inclusive date window; either end may be open."""

    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _utc_bounds(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def contains(self, value: datetime) -> bool:
        value = ensure_utc(value)
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


class SearchFilters(BaseModel):
    """Metadata filters applied after the vector search."""

    content_types: set[str] = Field(default_factory=set)
    tags: set[str] = Field(default_factory=set)
    date_range: DateRange | None = None

    @property
    def is_empty(self) -> bool:
        return not self.content_types and not self.tags and self.date_range is None


class SearchMetadata(BaseModel):
    """Aggregate information about one semantic search."""

    query_length: int = 0
    results_found: int = 0
    search_time_ms: float = 0.0
    average_score: float = Field(default=0.0, ge=0.0, le=1.0)


class SemanticSearchResult(BaseModel):
    """Ranked results plus aggregate metadata."""

    results: list[SearchResult] = Field(default_factory=list)
    metadata: SearchMetadata = Field(default_factory=SearchMetadata)


class StageResult(BaseModel):
    """Outcome of one retrieval stage."""

    stage: RetrievalStage
    query: str = ""
    results: list[SearchResult] = Field(default_factory=list)
    relevance: float = Field(default=0.0, ge=0.0, le=1.0)
    search_time_ms: float = Field(default=0.0, ge=0.0)


class StagedSearchResult(SemanticSearchResult):
    """
    Merged results of a FINE / MEDIUM / COARSE cascade.

    ``stages`` lists only the stages that ran, in order. ``best_stage`` is
    the one with the highest relevance, ``None`` when no stage found anything.
    """

    stages: list[StageResult] = Field(default_factory=list)
    best_stage: RetrievalStage | None = None
    stopped_early: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

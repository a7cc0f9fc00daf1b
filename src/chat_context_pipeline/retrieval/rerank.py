# chat_context_pipeline/retrieval/rerank.py
"""
Score boosting after vector search.

Each ScoringRule contributes a multiplier; the Reranker multiplies them
together, caps the result at 1.0 and re-sorts. Rules and their weight
tables are data, so a deployment can drop, reorder or retune them.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from chat_context_pipeline.models.chunk import Chunk, SearchResult, ensure_utc

logger = logging.getLogger(__name__)

_TERM = re.compile(r"\w+", re.UNICODE)


@runtime_checkable
class ScoringRule(Protocol):
    """Returns a multiplier (1.0 means no change) for one chunk."""

    def multiplier(self, chunk: Chunk, query: str, now: datetime) -> float: ...


# ============================================================================
# Weight tables
# ============================================================================


class RecencyTier(BaseModel):
    max_age_days: int = Field(..., gt=0)
    multiplier: float = Field(..., gt=0)


def _default_recency_tiers() -> list[RecencyTier]:
    return [
        RecencyTier(max_age_days=30, multiplier=1.15),
        RecencyTier(max_age_days=90, multiplier=1.1),
        RecencyTier(max_age_days=365, multiplier=1.05),
    ]


def _default_type_priors() -> dict[str, float]:
    return {
        "experiment": 1.1,
        "work": 1.05,
        "timeline": 1.0,
        "leadership": 0.95,
        "contact": 0.9,
    }


class RerankConfig(BaseModel):
    """Boost weights used by the built-in rules."""

    content_id_match: float = Field(default=1.2, gt=0)
    min_term_length: int = Field(default=2, ge=1)
    featured: float = Field(default=1.1, gt=0)
    recency_tiers: list[RecencyTier] = Field(default_factory=_default_recency_tiers)
    type_priors: dict[str, float] = Field(default_factory=_default_type_priors)
    max_score: float = Field(default=1.0, gt=0, le=1.0)


# ============================================================================
# Rules
# ============================================================================


class ContentIdMatchRule:
    """Boost when the query, or any query term, appears in the content id."""

    def __init__(self, boost: float = 1.2, min_term_length: int = 2):
        self.boost = boost
        self.min_term_length = min_term_length

    def multiplier(self, chunk: Chunk, query: str, now: datetime) -> float:
        content_id = chunk.metadata.content_id.lower()
        needle = query.strip().lower()
        if not content_id or not needle:
            return 1.0
        if needle in content_id:
            return self.boost
        for term in _TERM.findall(needle):
            if len(term) >= self.min_term_length and term in content_id:
                return self.boost
        return 1.0


class FeaturedRule:
    def __init__(self, boost: float = 1.1):
        self.boost = boost

    def multiplier(self, chunk: Chunk, query: str, now: datetime) -> float:
        return self.boost if chunk.metadata.featured else 1.0


class RecencyRule:
    """Tiered boost by age of the chunk's date relative to ``now``."""

    def __init__(self, tiers: list[RecencyTier] | None = None):
        self.tiers = sorted(tiers or _default_recency_tiers(), key=lambda t: t.max_age_days)

    def multiplier(self, chunk: Chunk, query: str, now: datetime) -> float:
        if chunk.metadata.date is None:
            return 1.0
        age_days = (ensure_utc(now) - chunk.metadata.date).total_seconds() / 86400
        for tier in self.tiers:
            if age_days < tier.max_age_days:
                return tier.multiplier
        return 1.0


class ContentTypePriorRule:
    def __init__(self, priors: dict[str, float] | None = None):
        self.priors = priors if priors is not None else _default_type_priors()

    def multiplier(self, chunk: Chunk, query: str, now: datetime) -> float:
        return self.priors.get(chunk.metadata.content_type, 1.0)


def default_rules(config: RerankConfig | None = None) -> list[ScoringRule]:
    config = config or RerankConfig()
    return [
        ContentIdMatchRule(config.content_id_match, config.min_term_length),
        FeaturedRule(config.featured),
        RecencyRule(config.recency_tiers),
        ContentTypePriorRule(config.type_priors),
    ]


# ============================================================================
# Reranker
# ============================================================================


class Reranker:
    """Applies rules multiplicatively, caps at max_score, sorts descending."""

    def __init__(self, rules: list[ScoringRule] | None = None, max_score: float = 1.0):
        self.rules = rules if rules is not None else default_rules()
        self.max_score = max_score

    @classmethod
    def from_config(cls, config: RerankConfig) -> Reranker:
        return cls(default_rules(config), max_score=config.max_score)

    def boost(self, result: SearchResult, query: str, now: datetime) -> float:
        score = result.score
        for rule in self.rules:
            score *= rule.multiplier(result.chunk, query, now)
        return min(score, self.max_score)

    def rerank(self, results: list[SearchResult], query: str, now: datetime) -> list[SearchResult]:
        boosted = [r.with_score(self.boost(r, query, now)) for r in results]
        # sorted() is stable, equal scores keep search order
        return sorted(boosted, key=lambda r: r.score, reverse=True)

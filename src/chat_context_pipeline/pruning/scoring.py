# chat_context_pipeline/pruning/scoring.py
"""
Quality and coherence scores for a pruned evidence set.

quality = coverage_weight * query-term coverage
        + score_weight * token-weighted mean relevance score

coherence = mean over kept pairs of
            (same content type + Jaccard of technology/tag sets) / 2

Both are clamped to [floor, 1]. A set of one chunk is fully coherent.
"""

from __future__ import annotations

import re
from itertools import combinations

from chat_context_pipeline.models.chunk import SearchResult

_TERM = re.compile(r"\w+", re.UNICODE)
MIN_TERM_LENGTH = 2


def query_terms(query: str) -> set[str]:
    return {t for t in _TERM.findall(query.lower()) if len(t) >= MIN_TERM_LENGTH}


def term_coverage(terms: set[str], kept: list[SearchResult]) -> float:
    """Fraction of query terms found in the kept text. No terms means full coverage."""
    if not terms:
        return 1.0
    text = " ".join(r.chunk.text for r in kept).lower()
    return sum(1 for t in terms if t in text) / len(terms)


def weighted_mean_score(kept: list[SearchResult]) -> float:
    if not kept:
        return 0.0
    total_tokens = sum(r.tokens for r in kept)
    if total_tokens == 0:
        return sum(r.score for r in kept) / len(kept)
    return sum(r.score * r.tokens for r in kept) / total_tokens


def _bounded(value: float, floor: float) -> float:
    return max(floor, min(1.0, value))


def quality_score(
    kept: list[SearchResult],
    query: str,
    coverage_weight: float = 0.6,
    score_weight: float = 0.4,
    floor: float = 0.01,
) -> float:
    if not kept:
        return floor
    raw = coverage_weight * term_coverage(query_terms(query), kept) + score_weight * weighted_mean_score(kept)
    return _bounded(raw, floor)


def _labels(result: SearchResult) -> set[str]:
    meta = result.chunk.metadata
    return {label.lower() for label in (*meta.technologies, *meta.tags)}


def jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def coherence_score(kept: list[SearchResult], floor: float = 0.01) -> float:
    if len(kept) < 2:
        return 1.0
    pair_scores = []
    for left, right in combinations(kept, 2):
        same_type = 1.0 if left.chunk.metadata.content_type == right.chunk.metadata.content_type else 0.0
        pair_scores.append((same_type + jaccard(_labels(left), _labels(right))) / 2)
    return _bounded(sum(pair_scores) / len(pair_scores), floor)

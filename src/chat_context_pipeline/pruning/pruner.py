# chat_context_pipeline/pruning/pruner.py
"""
ContextPruner - fits retrieved evidence into a token budget.

Selection is greedy by relevance: highest score first, ties broken by
smaller token count and then input order. A chunk that does not fit is
skipped and smaller chunks further down are still tried, so the budget is
used as fully as the ordering allows. Kept chunks are never altered: when
no single chunk fits, the selection is empty and the compression rate is 1.

The pruner never raises. Scoring failures fall back to fixed scores and
are flagged with ``degraded=True``; the selection still respects the
budget.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from pydantic import BaseModel, Field

from chat_context_pipeline.exceptions import PruningDegradation
from chat_context_pipeline.models.chunk import SearchResult
from chat_context_pipeline.models.pruning import PruneResult, PruningBenchmark
from chat_context_pipeline.pruning.scoring import coherence_score, quality_score

logger = logging.getLogger(__name__)


class PrunerConfig(BaseModel):
    """Weights and thresholds for pruning."""

    coverage_weight: float = Field(default=0.6, ge=0.0, le=1.0, description="Weight of query-term coverage")
    score_weight: float = Field(default=0.4, ge=0.0, le=1.0, description="Weight of mean relevance score")
    score_floor: float = Field(default=0.01, gt=0.0, le=1.0, description="Lower bound for both scores")
    fallback_score: float = Field(default=0.5, gt=0.0, le=1.0, description="Used when scoring fails")


class ContextPruner:
    """Budget-respecting evidence selection with quality/coherence scoring."""

    def __init__(
        self,
        config: PrunerConfig | None = None,
        quality_fn: Callable[[list[SearchResult], str], float] | None = None,
        coherence_fn: Callable[[list[SearchResult]], float] | None = None,
    ):
        self.config = config or PrunerConfig()
        self._quality_fn = quality_fn
        self._coherence_fn = coherence_fn

    # ------------------------------------------------------------------ #
    # Scoring
    # ------------------------------------------------------------------ #

    def _quality(self, kept: list[SearchResult], query: str) -> float:
        if self._quality_fn is not None:
            return self._quality_fn(kept, query)
        cfg = self.config
        return quality_score(kept, query, cfg.coverage_weight, cfg.score_weight, cfg.score_floor)

    def _coherence(self, kept: list[SearchResult]) -> float:
        if self._coherence_fn is not None:
            return self._coherence_fn(kept)
        return coherence_score(kept, self.config.score_floor)

    def _score(self, kept: list[SearchResult], query: str) -> tuple[float, float, bool]:
        floor = self.config.score_floor
        try:
            quality = float(self._quality(kept, query))
            coherence = float(self._coherence(kept))
            if quality != quality or coherence != coherence:  # NaN
                raise PruningDegradation("score is NaN")
        except Exception as e:
            logger.warning("Pruning scores unavailable, using defaults: %s", e)
            fallback = self.config.fallback_score
            return fallback, fallback, True
        return max(floor, min(1.0, quality)), max(floor, min(1.0, coherence)), False

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #

    def _select(self, results: list[SearchResult], budget: int) -> list[SearchResult]:
        order = sorted(enumerate(results), key=lambda p: (-p[1].score, p[1].tokens, p[0]))
        kept: list[SearchResult] = []
        remaining = budget
        for _, result in order:
            if result.tokens <= remaining:
                kept.append(result)
                remaining -= result.tokens
        return kept

    def prune(self, results: list[SearchResult], query: str, target_tokens: int) -> PruneResult:
        """
        Fit ``results`` into ``target_tokens``.

        Empty input gives an empty result with rate 0 and scores 1. Input
        already within budget is returned unchanged with rate 0 and scores
        1. Otherwise a budget-respecting subset is kept, sorted by score.
        """
        start = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        try:
            results = list(results or [])
            budget = max(0, int(target_tokens))
            original = sum(r.tokens for r in results)

            if not results:
                return PruneResult(processing_time_ms=elapsed())

            if original <= budget:
                return PruneResult(
                    pruned_chunks=results,
                    original_tokens=original,
                    final_tokens=original,
                    processing_time_ms=elapsed(),
                )

            kept = self._select(results, budget)
            final = sum(r.tokens for r in kept)
        except Exception as e:
            logger.warning("Pruning failed, returning no evidence: %s", e)
            return PruneResult(
                coherence_score=self.config.fallback_score,
                quality_score=self.config.fallback_score,
                processing_time_ms=elapsed(),
                degraded=True,
            )

        quality, coherence, degraded = self._score(kept, query)
        compression = (original - final) / original if original else 0.0

        logger.debug(
            "Pruned %d -> %d chunks, %d -> %d tokens (budget %d)",
            len(results),
            len(kept),
            original,
            final,
            budget,
        )
        return PruneResult(
            pruned_chunks=kept,
            original_tokens=original,
            final_tokens=final,
            compression_rate=compression,
            coherence_score=coherence,
            quality_score=quality,
            processing_time_ms=elapsed(),
            degraded=degraded,
        )

    def validate_performance(self, cases: Iterable[tuple[list[SearchResult], str, int]]) -> PruningBenchmark:
        """Run ``prune`` over (results, query, target) cases and average the figures."""
        runs = [self.prune(results, query, target) for results, query, target in cases]
        if not runs:
            return PruningBenchmark()
        n = len(runs)
        return PruningBenchmark(
            cases=n,
            avg_compression_rate=sum(r.compression_rate for r in runs) / n,
            avg_coherence_score=sum(r.coherence_score for r in runs) / n,
            avg_quality_score=sum(r.quality_score for r in runs) / n,
            avg_processing_time_ms=sum(r.processing_time_ms for r in runs) / n,
        )

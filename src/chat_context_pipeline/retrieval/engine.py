# chat_context_pipeline/retrieval/engine.py
"""
Retrieval engine.

semantic_search is the single network suspension point of a request: it
embeds the query and asks the vector index, under a deadline. Everything
after the index call (filters, dedupe, rerank, thresholds) is local.
Failures never propagate; the caller gets an empty result and the
assistant answers without evidence. retrieve runs the staged cascade from
``retrieval.stages`` on top of semantic_search.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from datetime import UTC, datetime

from chat_context_pipeline.config import DEFAULT_MIN_SCORE, RETRIEVAL_TIMEOUT_SECONDS
from chat_context_pipeline.exceptions import RetrievalFailure
from chat_context_pipeline.models.chunk import (
    SearchFilters,
    SearchMetadata,
    SearchResult,
    SemanticSearchResult,
    StagedSearchResult,
    StageResult,
)
from chat_context_pipeline.models.enums import QueryIntent
from chat_context_pipeline.models.query import ContextSizeConfig
from chat_context_pipeline.retrieval.embedding import EmbeddingProvider
from chat_context_pipeline.retrieval.filters import apply_filters, deduplicate_by_content_id
from chat_context_pipeline.retrieval.rerank import Reranker
from chat_context_pipeline.retrieval.stages import (
    StagedRetrievalConfig,
    best_stage,
    cascade_confidence,
    expand_query,
    merge_stage_results,
    stage_relevance,
)
from chat_context_pipeline.retrieval.vector_index import VectorIndex

logger = logging.getLogger(__name__)

# Over-fetch factors: filters discard candidates, so fetch more when they apply.
FILTERED_OVERFETCH = 3
UNFILTERED_OVERFETCH = 2
# Candidates are fetched below the final threshold so boosts can lift them over it.
CANDIDATE_SCORE_FACTOR = 0.8


def _utcnow() -> datetime:
    return datetime.now(UTC)


def select_diverse(results: list[SearchResult], limit: int) -> list[SearchResult]:
    """
    Up to ``limit`` results, covering as many content types as possible.

    The best result of each content type is taken first (in score order),
    remaining slots are filled by score. Output is sorted by score.
    """
    if limit <= 0:
        return []
    ranked = sorted(results, key=lambda r: r.score, reverse=True)

    chosen: list[int] = []
    seen_types: set[str] = set()
    for position, result in enumerate(ranked):
        if len(chosen) >= limit:
            break
        content_type = result.chunk.metadata.content_type
        if content_type not in seen_types:
            seen_types.add(content_type)
            chosen.append(position)

    for position in range(len(ranked)):
        if len(chosen) >= limit:
            break
        if position not in chosen:
            chosen.append(position)

    return [ranked[p] for p in sorted(chosen)]


def _average(results: list[SearchResult]) -> float:
    return sum(r.score for r in results) / len(results) if results else 0.0


def _empty_result(query_length: int, start: float) -> SemanticSearchResult:
    return SemanticSearchResult(
        metadata=SearchMetadata(query_length=query_length, search_time_ms=(time.perf_counter() - start) * 1000)
    )


class RetrievalEngine:
    """Semantic search with filtering, deduplication and reranking."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        reranker: Reranker | None = None,
        timeout: float = RETRIEVAL_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        stages: StagedRetrievalConfig | None = None,
    ):
        self.embedder = embedder
        self.index = index
        self.reranker = reranker or Reranker()
        self.stages = stages or StagedRetrievalConfig()
        self.timeout = timeout
        self.clock = clock

    async def _fetch(self, query: str, fetch_k: int, min_score: float) -> list[SearchResult]:
        vector = await self.embedder.embed(query)
        if not vector:
            raise RetrievalFailure("Embedding provider returned an empty vector")
        results = await self.index.query(vector, fetch_k, min_score)
        if not isinstance(results, list) or not all(isinstance(r, SearchResult) for r in results):
            raise RetrievalFailure("Vector index returned malformed results")
        return results

    async def semantic_search(
        self,
        query: str,
        top_k: int = 5,
        min_score: float = DEFAULT_MIN_SCORE,
        filters: SearchFilters | None = None,
    ) -> SemanticSearchResult:
        """
        Ranked evidence for ``query``.

        Over-fetches (3x with filters, 2x without) at 80% of ``min_score``,
        then filters, dedupes by content id, reranks, applies ``min_score``
        and truncates to ``top_k``. Any failure, timeout included, yields an
        empty result with zeroed metadata.
        """
        start = time.perf_counter()
        query_length = len(query or "")

        if not query or not query.strip() or top_k <= 0:
            return SemanticSearchResult(metadata=SearchMetadata(query_length=query_length))

        has_filters = filters is not None and not filters.is_empty
        fetch_k = top_k * (FILTERED_OVERFETCH if has_filters else UNFILTERED_OVERFETCH)

        try:
            candidates = await asyncio.wait_for(
                self._fetch(query, fetch_k, min_score * CANDIDATE_SCORE_FACTOR),
                timeout=self.timeout,
            )
            candidates = apply_filters(candidates, filters)
            candidates = deduplicate_by_content_id(candidates)
            ranked = self.reranker.rerank(candidates, query, self.clock())
            results = [r for r in ranked if r.score >= min_score][:top_k]
        except TimeoutError:
            logger.warning("Semantic search timed out after %.1fs", self.timeout)
            return _empty_result(query_length, start)
        except Exception as e:
            logger.warning("Semantic search failed: %s", e)
            return _empty_result(query_length, start)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("Semantic search: %d results in %.1fms", len(results), elapsed_ms)
        return SemanticSearchResult(
            results=results,
            metadata=SearchMetadata(
                query_length=query_length,
                results_found=len(results),
                search_time_ms=elapsed_ms,
                average_score=_average(results),
            ),
        )

    async def retrieve(
        self,
        query: str,
        plan: ContextSizeConfig,
        intent: QueryIntent,
        filters: SearchFilters | None = None,
        min_score: float = DEFAULT_MIN_SCORE,
    ) -> StagedSearchResult:
        """
        Staged search sized by a context plan.

        Runs the intent's FINE -> MEDIUM -> COARSE stages in order, each a
        ``semantic_search`` with the stage's own candidate count and a
        threshold of ``min_score`` plus the stage margin. With query
        expansion on, each stage appends its expansion terms to the query.
        The cascade stops early once a stage clears its early-stop rule.

        Stage results are merged (one per content id, best score first) and
        cut to ``max(chunk_count, ceil(chunk_count * top_k_multiplier))``,
        preferring distinct content types when diversity is on. The token
        budget is left to the pruner.
        """
        start = time.perf_counter()
        top_k = max(plan.chunk_count, math.ceil(plan.chunk_count * plan.top_k_multiplier))

        stages: list[StageResult] = []
        stopped_early = False
        for stage in self.stages.stages_for(intent):
            stage_query = expand_query(query, stage.expansion_terms) if plan.query_expansion else query
            search = await self.semantic_search(
                stage_query, top_k=stage.top_k, min_score=stage.threshold(min_score), filters=filters
            )
            result = StageResult(
                stage=stage.stage,
                query=stage_query,
                results=search.results,
                relevance=stage_relevance(search.results),
                search_time_ms=search.metadata.search_time_ms,
            )
            stages.append(result)
            logger.debug(
                "Stage %s: %d results, relevance %.2f", stage.stage.value, len(result.results), result.relevance
            )
            if self.stages.should_stop(result):
                stopped_early = True
                break

        merged = merge_stage_results(stages)
        if plan.diversity_boost:
            results = select_diverse(merged, top_k)
        else:
            results = merged[:top_k]

        best = best_stage(stages)
        return StagedSearchResult(
            results=results,
            metadata=SearchMetadata(
                query_length=len(query or ""),
                results_found=len(results),
                search_time_ms=(time.perf_counter() - start) * 1000,
                average_score=_average(results),
            ),
            stages=stages,
            best_stage=best.stage if best is not None else None,
            stopped_early=stopped_early,
            confidence=cascade_confidence(stages, stopped_early),
        )

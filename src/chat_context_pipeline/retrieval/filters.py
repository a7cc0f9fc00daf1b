# chat_context_pipeline/retrieval/filters.py
"""Post-search metadata filtering and deduplication."""

from __future__ import annotations

from chat_context_pipeline.models.chunk import SearchFilters, SearchResult


def matches_filters(result: SearchResult, filters: SearchFilters) -> bool:
    """
    True when the chunk passes every active filter.

    Type filter: content type in the set. Tag filter: at least one tag in
    common. Date filter: inclusive range; chunks without a date pass.
    """
    meta = result.chunk.metadata
    if filters.content_types and meta.content_type not in filters.content_types:
        return False
    if filters.tags and not filters.tags.intersection(meta.tags):
        return False
    if filters.date_range is not None and meta.date is not None:
        if not filters.date_range.contains(meta.date):
            return False
    return True


def apply_filters(results: list[SearchResult], filters: SearchFilters | None) -> list[SearchResult]:
    if filters is None or filters.is_empty:
        return list(results)
    return [r for r in results if matches_filters(r, filters)]


def deduplicate_by_content_id(results: list[SearchResult]) -> list[SearchResult]:
    """
    One result per content id, keeping the highest score.

    The survivor takes the position of the first occurrence. Chunks with an
    empty content id are keyed by their chunk id instead.
    """
    best: dict[str, int] = {}
    deduped: list[SearchResult] = []
    for result in results:
        content_id = result.chunk.metadata.content_id or result.chunk.id
        position = best.get(content_id)
        if position is None:
            best[content_id] = len(deduped)
            deduped.append(result)
        elif result.score > deduped[position].score:
            deduped[position] = result
    return deduped

# tests/test_retrieval_engine.py
"""
Tests for RetrievalEngine.

Covers:
- Over-fetch size and relaxed candidate threshold
- Final min_score guarantee and top_k truncation
- Failure, timeout and malformed-response degradation
- Staged retrieve(): stage order, early stop, cross-stage merge
- Plan-driven result size, per-stage query expansion and diversity
- build_context_window formatting
"""

import pytest

from chat_context_pipeline.models import ContextSizeConfig, QueryIntent, RetrievalStage, SearchFilters
from chat_context_pipeline.retrieval import (
    InMemoryVectorIndex,
    Reranker,
    RetrievalEngine,
    RetrievalStageConfig,
    StagedRetrievalConfig,
    build_context_window,
    expand_query,
    select_diverse,
)
from tests.fakes import FIXED_NOW, VocabularyEmbedder, make_result

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _MalformedIndex:
    async def query(self, vector, top_k, min_score):
        return [{"id": "not-a-result", "score": 0.9}]


class _CountingEmbedder:
    def __init__(self):
        self.calls = 0

    async def embed(self, text):
        self.calls += 1
        return [1.0]


def _neutral(chunk_id: str, score: float, **kwargs):
    """A result no default rule boosts."""
    kwargs.setdefault("content_type", "other")
    return make_result(chunk_id, score, **kwargs)


def _engine(embedder, index, **kwargs):
    return RetrievalEngine(embedder, index, clock=lambda: FIXED_NOW, **kwargs)


# ===========================================================================
# semantic_search
# ===========================================================================


class TestSemanticSearch:
    @pytest.mark.asyncio
    async def test_overfetch_without_filters(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.9)])
        await _engine(static_embedder, index).semantic_search("q", top_k=4, min_score=0.5)
        top_k, min_score = index.calls[0]
        assert top_k == 8
        assert min_score == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_overfetch_with_filters(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.9)])
        filters = SearchFilters(content_types={"other"})
        await _engine(static_embedder, index).semantic_search("q", top_k=4, min_score=0.5, filters=filters)
        assert index.calls[0][0] == 12

    @pytest.mark.asyncio
    async def test_never_returns_below_min_score(self, static_embedder, scripted_index):
        index = scripted_index(
            [
                _neutral("a", 0.9),
                _neutral("b", 0.55),
                _neutral("c", 0.45),
                _neutral("d", 0.42),
                _neutral("lifted", 0.46, content_type="experiment", featured=True),
            ]
        )
        result = await _engine(static_embedder, index).semantic_search("q", top_k=10, min_score=0.5)
        assert [r.chunk.id for r in result.results] == ["a", "lifted", "b"]
        assert all(r.score >= 0.5 for r in result.results)

    @pytest.mark.parametrize("min_score", [0.0, 0.3, 0.6, 0.85, 0.99])
    @pytest.mark.asyncio
    async def test_min_score_holds_for_any_threshold(self, static_embedder, scripted_index, min_score):
        index = scripted_index(
            [
                make_result("w", 0.82, content_type="work"),
                make_result("c", 0.9, content_type="contact"),
                make_result("f", 0.7, featured=True, content_type="leadership"),
                _neutral("n", 0.5),
            ]
        )
        result = await _engine(static_embedder, index).semantic_search("q", top_k=10, min_score=min_score)
        assert all(r.score >= min_score for r in result.results)

    @pytest.mark.asyncio
    async def test_truncates_to_top_k_and_reports_metadata(self, static_embedder, scripted_index):
        index = scripted_index([_neutral(str(i), 0.9 - i * 0.05) for i in range(6)])
        result = await _engine(static_embedder, index).semantic_search("query", top_k=2, min_score=0.5)
        assert [r.chunk.id for r in result.results] == ["0", "1"]
        assert result.metadata.results_found == 2
        assert result.metadata.query_length == 5
        assert result.metadata.average_score == pytest.approx((0.9 + 0.85) / 2)
        assert result.metadata.search_time_ms >= 0

    @pytest.mark.asyncio
    async def test_filters_then_dedupes(self, static_embedder, scripted_index):
        index = scripted_index(
            [
                _neutral("vw-a", 0.7, content_id="vw", tags=["auto"]),
                _neutral("vw-b", 0.8, content_id="vw", tags=["auto"]),
                _neutral("bank", 0.9, content_id="bank", tags=["finance"]),
            ]
        )
        filters = SearchFilters(tags={"auto"})
        result = await _engine(static_embedder, index).semantic_search("q", top_k=5, min_score=0.5, filters=filters)
        assert [r.chunk.id for r in result.results] == ["vw-b"]

    @pytest.mark.asyncio
    async def test_custom_reranker(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.6), _neutral("b", 0.55)])
        engine = _engine(static_embedder, index, reranker=Reranker(rules=[]))
        result = await engine.semantic_search("q", top_k=5, min_score=0.5)
        assert [r.score for r in result.results] == [0.6, 0.55]


class TestSemanticSearchFailures:
    @pytest.mark.asyncio
    async def test_embedding_failure_gives_empty_result(self, failing_embedder, scripted_index):
        result = await _engine(failing_embedder, scripted_index([_neutral("a", 0.9)])).semantic_search("hello")
        assert result.results == []
        assert result.metadata.results_found == 0
        assert result.metadata.average_score == 0.0
        assert result.metadata.query_length == 5

    @pytest.mark.asyncio
    async def test_timeout_gives_empty_result(self, hanging_embedder, scripted_index):
        engine = _engine(hanging_embedder, scripted_index([_neutral("a", 0.9)]), timeout=0.05)
        result = await engine.semantic_search("hello")
        assert result.results == []
        assert result.metadata.results_found == 0

    @pytest.mark.asyncio
    async def test_malformed_index_response(self, static_embedder):
        result = await _engine(static_embedder, _MalformedIndex()).semantic_search("hello")
        assert result.results == []

    @pytest.mark.asyncio
    async def test_index_dimension_error_is_absorbed(self, static_embedder):
        index = InMemoryVectorIndex([make_result("a", 0.5, embedding=[1.0, 0.0, 0.0]).chunk])
        result = await _engine(static_embedder, index).semantic_search("hello")
        assert result.results == []

    @pytest.mark.asyncio
    async def test_empty_query_skips_embedding(self, scripted_index):
        embedder = _CountingEmbedder()
        result = await _engine(embedder, scripted_index([])).semantic_search("   ")
        assert result.results == []
        assert embedder.calls == 0


# ===========================================================================
# Query expansion and diversity
# ===========================================================================


class TestExpandQuery:
    def test_appends_stage_terms(self):
        assert expand_query("porównaj VW", ("contrast", "versus")) == "porównaj VW contrast versus"

    def test_skips_terms_already_present(self):
        assert expand_query("Contrast VW and Polsat", ("contrast", "versus")) == "Contrast VW and Polsat versus"

    def test_unchanged_without_missing_terms(self):
        assert expand_query("q", ()) == "q"
        assert expand_query("process details", ["process"]) == "process details"


class TestSelectDiverse:
    def test_prefers_distinct_types(self):
        results = [
            _neutral("w1", 0.9, content_type="work"),
            _neutral("w2", 0.8, content_type="work"),
            _neutral("w3", 0.7, content_type="work"),
            _neutral("e1", 0.6, content_type="experiment"),
            _neutral("c1", 0.5, content_type="contact"),
        ]
        assert [r.chunk.id for r in select_diverse(results, 3)] == ["w1", "e1", "c1"]

    def test_fills_by_score_after_types(self):
        results = [
            _neutral("w1", 0.9, content_type="work"),
            _neutral("w2", 0.8, content_type="work"),
            _neutral("e1", 0.6, content_type="experiment"),
        ]
        assert [r.chunk.id for r in select_diverse(results, 3)] == ["w1", "w2", "e1"]

    def test_zero_limit(self):
        assert select_diverse([_neutral("a", 0.9)], 0) == []


# ===========================================================================
# retrieve
# ===========================================================================


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_top_k_from_plan(self, static_embedder, scripted_index):
        index = scripted_index([_neutral(str(i), 0.9 - i * 0.01) for i in range(10)])
        plan = ContextSizeConfig(max_tokens=600, chunk_count=2, top_k_multiplier=1.5)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.FACTUAL)
        # max(2, ceil(2 * 1.5)) = 3 results; FINE keeps 3 at >= 0.85 and stops
        assert len(result.results) == 3
        assert index.calls == [(6, pytest.approx(0.68))]
        assert [s.stage for s in result.stages] == [RetrievalStage.FINE]
        assert result.stopped_early is True

    @pytest.mark.asyncio
    async def test_multiplier_below_one_keeps_chunk_count(self, static_embedder, scripted_index):
        index = scripted_index([_neutral(str(i), 0.9) for i in range(10)])
        plan = ContextSizeConfig(max_tokens=300, chunk_count=2, top_k_multiplier=0.5)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.CASUAL)
        assert len(result.results) == 2

    @pytest.mark.asyncio
    async def test_expansion_searches_each_stage_query(self, scripted_index):
        embedder = VocabularyEmbedder(["q"])
        index = scripted_index([_neutral("a", 0.9)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=2, query_expansion=True)
        result = await _engine(embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)
        assert embedder.calls == ["q detailed process", "q related context methodology", "q background overview"]
        assert [s.query for s in result.stages] == embedder.calls

    @pytest.mark.asyncio
    async def test_without_expansion_stages_search_plain_query(self, scripted_index):
        embedder = VocabularyEmbedder(["q"])
        index = scripted_index([_neutral("a", 0.9)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=2)
        await _engine(embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)
        assert embedder.calls == ["q", "q", "q"]

    @pytest.mark.asyncio
    async def test_results_are_deduped_across_stages(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.9), _neutral("b", 0.8)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=4, query_expansion=True)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)
        assert [r.chunk.id for r in result.results] == ["a", "b"]
        assert len(result.stages) == 3

    @pytest.mark.asyncio
    async def test_diversity_applies_when_planned(self, static_embedder, scripted_index):
        index = scripted_index(
            [
                _neutral("w1", 0.9, content_type="misc"),
                _neutral("w2", 0.85, content_type="misc"),
                _neutral("w3", 0.8, content_type="misc"),
                _neutral("t1", 0.65, content_type="timeline"),
            ]
        )
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=2, diversity_boost=True)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)
        assert [r.chunk.id for r in result.results] == ["w1", "t1"]

    @pytest.mark.asyncio
    async def test_portfolio_comparison(self, portfolio_embedder, portfolio_corpus):
        engine = _engine(portfolio_embedder, InMemoryVectorIndex(portfolio_corpus))
        plan = ContextSizeConfig(
            max_tokens=1800, chunk_count=8, diversity_boost=True, query_expansion=True, top_k_multiplier=2.0
        )
        result = await engine.retrieve("porównaj swoje doświadczenie w VW vs Polsat", plan, QueryIntent.COMPARISON)
        ids = [r.chunk.id for r in result.results]
        # vw-2 shares a content id with the higher-scoring vw-1
        assert ids == ["polsat-1", "vw-1"]
        assert result.results[0].score == 1.0
        assert all(r.score >= 0.5 for r in result.results)
        # two hits never satisfy an early-stop rule, so every stage runs
        assert [s.stage for s in result.stages] == [RetrievalStage.FINE, RetrievalStage.MEDIUM, RetrievalStage.COARSE]
        assert result.best_stage == RetrievalStage.FINE


class TestStagedCascade:
    @pytest.mark.asyncio
    async def test_stages_run_in_order_with_own_sizes_and_thresholds(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.65)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=4)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)

        # top_k 4 / 8 / 12 over-fetched 2x, at 80% of 0.8 / 0.7 / 0.6
        assert [k for k, _ in index.calls] == [8, 16, 24]
        assert [m for _, m in index.calls] == [pytest.approx(0.64), pytest.approx(0.56), pytest.approx(0.48)]
        assert [len(s.results) for s in result.stages] == [0, 0, 1]
        assert result.best_stage == RetrievalStage.COARSE
        assert result.stopped_early is False
        assert [r.chunk.id for r in result.results] == ["a"]

    @pytest.mark.asyncio
    async def test_stops_after_confident_fine_stage(self, static_embedder, scripted_index):
        index = scripted_index([_neutral(f"f{i}", 0.95) for i in range(6)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=6)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)

        assert len(index.calls) == 1
        assert result.stopped_early is True
        assert result.best_stage == RetrievalStage.FINE
        assert len(result.results) == 4
        assert result.confidence == pytest.approx(0.6 * 0.95 + 0.2)

    @pytest.mark.asyncio
    async def test_stops_after_confident_medium_stage(self, static_embedder, scripted_index):
        index = scripted_index([_neutral(f"m{i}", 0.78) for i in range(5)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=6)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)

        assert [s.stage for s in result.stages] == [RetrievalStage.FINE, RetrievalStage.MEDIUM]
        assert result.stages[0].results == []
        assert result.best_stage == RetrievalStage.MEDIUM
        assert result.stopped_early is True
        assert len(result.results) == 5

    @pytest.mark.asyncio
    async def test_fine_stage_needs_three_results_to_stop(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.95), _neutral("b", 0.95)])
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=2)
        result = await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.EXPLORATION)
        assert len(result.stages) == 3
        assert result.stopped_early is False

    @pytest.mark.asyncio
    async def test_failed_searches_give_empty_cascade(self, failing_embedder, scripted_index):
        plan = ContextSizeConfig(max_tokens=1200, chunk_count=4)
        result = await _engine(failing_embedder, scripted_index([])).retrieve("q", plan, QueryIntent.COMPARISON)
        assert result.results == []
        assert len(result.stages) == 3
        assert result.best_stage is None
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_caller_floor_raises_every_stage(self, static_embedder, scripted_index):
        index = scripted_index([_neutral("a", 0.9)])
        plan = ContextSizeConfig(max_tokens=300, chunk_count=1)
        await _engine(static_embedder, index).retrieve("q", plan, QueryIntent.CASUAL, min_score=0.6)
        # CASUAL has one stage, margin 0.3 over the floor
        assert index.calls == [(4, pytest.approx(0.72))]

    @pytest.mark.asyncio
    async def test_custom_stage_table(self, static_embedder, scripted_index):
        stages = StagedRetrievalConfig(
            stages={QueryIntent.CASUAL: [RetrievalStageConfig(stage=RetrievalStage.COARSE, top_k=1)]}
        )
        index = scripted_index([_neutral("a", 0.9), _neutral("b", 0.8)])
        plan = ContextSizeConfig(max_tokens=300, chunk_count=3)
        result = await _engine(static_embedder, index, stages=stages).retrieve("q", plan, QueryIntent.FACTUAL)

        # FACTUAL is missing from the table, so the CASUAL stages run
        assert index.calls == [(2, pytest.approx(0.4))]
        assert [r.chunk.id for r in result.results] == ["a"]


# ===========================================================================
# build_context_window
# ===========================================================================


class TestBuildContextWindow:
    def test_groups_by_type_with_relevance(self):
        results = [
            _neutral("a", 0.9, content_type="work", text="Led the VW design system"),
            _neutral("b", 0.8, content_type="experiment", text="Built an AI prototype"),
            _neutral("c", 0.75, content_type="work", text="Redesigned Polsat Box Go"),
        ]
        window = build_context_window(results)
        assert window.index("### WORK") < window.index("### EXPERIMENT")
        assert "- Led the VW design system (relevance: 90.0%)" in window
        assert window.index("Redesigned Polsat") < window.index("### EXPERIMENT")

    def test_stops_at_budget(self):
        results = [_neutral(str(i), 0.9, content_type="work", text="x" * 40) for i in range(10)]
        window = build_context_window(results, max_tokens=40)
        assert 0 < len(window) <= 40 * 4
        assert window.count("- x") < 10

    def test_empty(self):
        assert build_context_window([]) == ""

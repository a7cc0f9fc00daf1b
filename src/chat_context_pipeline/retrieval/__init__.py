# chat_context_pipeline/retrieval/__init__.py
"""Semantic retrieval: embeddings, vector index, filters, reranking."""

from chat_context_pipeline.retrieval.embedding import (
    EmbeddingProvider,
    HashingEmbeddingProvider,
    OpenAIEmbeddingProvider,
)
from chat_context_pipeline.retrieval.engine import RetrievalEngine, select_diverse
from chat_context_pipeline.retrieval.filters import apply_filters, deduplicate_by_content_id, matches_filters
from chat_context_pipeline.retrieval.formatting import build_context_window, group_by_content_type
from chat_context_pipeline.retrieval.rerank import (
    ContentIdMatchRule,
    ContentTypePriorRule,
    FeaturedRule,
    RecencyRule,
    RecencyTier,
    RerankConfig,
    Reranker,
    ScoringRule,
    default_rules,
)
from chat_context_pipeline.retrieval.similarity import cosine_similarity
from chat_context_pipeline.retrieval.stages import (
    EarlyStopRule,
    RetrievalStageConfig,
    StagedRetrievalConfig,
    best_stage,
    cascade_confidence,
    expand_query,
    merge_stage_results,
    stage_relevance,
)
from chat_context_pipeline.retrieval.vector_index import InMemoryVectorIndex, VectorIndex

__all__ = [
    # Embeddings
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    # Index
    "InMemoryVectorIndex",
    "VectorIndex",
    "cosine_similarity",
    # Post-processing
    "apply_filters",
    "deduplicate_by_content_id",
    "matches_filters",
    "ContentIdMatchRule",
    "ContentTypePriorRule",
    "FeaturedRule",
    "RecencyRule",
    "RecencyTier",
    "RerankConfig",
    "Reranker",
    "ScoringRule",
    "default_rules",
    # Engine
    "RetrievalEngine",
    "select_diverse",
    # Staged retrieval
    "EarlyStopRule",
    "RetrievalStageConfig",
    "StagedRetrievalConfig",
    "best_stage",
    "cascade_confidence",
    "expand_query",
    "merge_stage_results",
    "stage_relevance",
    "build_context_window",
    "group_by_content_type",
]

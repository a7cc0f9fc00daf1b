# chat_context_pipeline/models/__init__.py
"""Data models for the context pipeline."""

from chat_context_pipeline.models.cache import CacheStats
from chat_context_pipeline.models.chunk import (
    Chunk,
    ChunkMetadata,
    DateRange,
    SearchFilters,
    SearchMetadata,
    SearchResult,
    SemanticSearchResult,
    StagedSearchResult,
    StageResult,
    clamp_score,
    estimate_tokens,
)
from chat_context_pipeline.models.conversation import (
    ConversationMessage,
    ConversationSession,
    FeedbackRecord,
    MemoryStats,
    MessageMetadata,
    SessionSummary,
)
from chat_context_pipeline.models.enums import (
    Feedback,
    Language,
    MessageRole,
    PipelineStage,
    QueryComplexity,
    QueryIntent,
    RetrievalStage,
)
from chat_context_pipeline.models.pipeline import (
    AssembledPrompt,
    ChatMessage,
    CompletionResult,
    PipelineRequest,
    PipelineResponse,
    ResponseMetadata,
)
from chat_context_pipeline.models.pruning import PruneResult, PruningBenchmark
from chat_context_pipeline.models.query import ContextSizeConfig, IntentResult, Query

__all__ = [
    # Enums
    "Feedback",
    "Language",
    "MessageRole",
    "PipelineStage",
    "QueryComplexity",
    "QueryIntent",
    "RetrievalStage",
    # Query
    "ContextSizeConfig",
    "IntentResult",
    "Query",
    # Corpus
    "Chunk",
    "ChunkMetadata",
    "DateRange",
    "SearchFilters",
    "SearchMetadata",
    "SearchResult",
    "SemanticSearchResult",
    "StagedSearchResult",
    "StageResult",
    "clamp_score",
    "estimate_tokens",
    # Cache
    "CacheStats",
    # Pruning
    "PruneResult",
    "PruningBenchmark",
    # Conversation
    "ConversationMessage",
    "ConversationSession",
    "FeedbackRecord",
    "MemoryStats",
    "MessageMetadata",
    "SessionSummary",
    # Pipeline
    "AssembledPrompt",
    "ChatMessage",
    "CompletionResult",
    "PipelineRequest",
    "PipelineResponse",
    "ResponseMetadata",
]

# chat_context_pipeline/__init__.py
"""
chat-context-pipeline - context selection for a retrieval-augmented chat assistant.

Per turn: classify the query, size the evidence budget, retrieve and rerank
chunks, prune them into the budget, recall relevant conversation history
and assemble the prompt.

Quick start:
    from chat_context_pipeline import (
        ChatContextPipeline, ConversationMemory, HashingEmbeddingProvider,
        InMemoryVectorIndex, RetrievalEngine,
    )

    embedder = HashingEmbeddingProvider()
    index = await InMemoryVectorIndex.from_texts(chunks, embedder)
    pipeline = ChatContextPipeline(RetrievalEngine(embedder, index), ConversationMemory())
    response = await pipeline.process({"messages": [{"role": "user", "content": "cześć"}], "sessionId": "s1"})
"""

import logging

from chat_context_pipeline.assembler import ContextAssembler
from chat_context_pipeline.cache import CacheConfig, ContextCache
from chat_context_pipeline.exceptions import (
    AnalysisFailure,
    ContextPipelineError,
    InputError,
    PruningDegradation,
    RetrievalFailure,
    SessionNotFound,
)
from chat_context_pipeline.feedback import FeedbackLog
from chat_context_pipeline.intent import (
    IntentClassifier,
    RuleBasedIntentClassifier,
    analyze_query,
    calculate_complexity,
    classify_intent,
    detect_language,
)
from chat_context_pipeline.memory import (
    AsyncioScheduler,
    ConversationMemory,
    InMemorySessionStore,
    JsonFileSnapshotSink,
    ManualScheduler,
    MemoryLifecycle,
    SessionStore,
    extract_topics,
)
from chat_context_pipeline.models import (
    Chunk,
    ChunkMetadata,
    ContextSizeConfig,
    Feedback,
    Language,
    PipelineRequest,
    PipelineResponse,
    PruneResult,
    Query,
    QueryComplexity,
    QueryIntent,
    RetrievalStage,
    SearchFilters,
    SearchResult,
    SemanticSearchResult,
    StagedSearchResult,
)
from chat_context_pipeline.pipeline import ChatContextPipeline, extractive_completion
from chat_context_pipeline.planner import ContextSizePlanner, plan_context_size
from chat_context_pipeline.pruning import ContextPruner
from chat_context_pipeline.retrieval import (
    HashingEmbeddingProvider,
    InMemoryVectorIndex,
    OpenAIEmbeddingProvider,
    Reranker,
    RetrievalEngine,
    StagedRetrievalConfig,
    build_context_window,
    cosine_similarity,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Pipeline
    "ChatContextPipeline",
    "extractive_completion",
    "ContextAssembler",
    "ContextCache",
    "CacheConfig",
    "FeedbackLog",
    # Query analysis and planning
    "IntentClassifier",
    "RuleBasedIntentClassifier",
    "analyze_query",
    "calculate_complexity",
    "classify_intent",
    "detect_language",
    "ContextSizePlanner",
    "plan_context_size",
    # Retrieval
    "HashingEmbeddingProvider",
    "InMemoryVectorIndex",
    "OpenAIEmbeddingProvider",
    "Reranker",
    "RetrievalEngine",
    "StagedRetrievalConfig",
    "build_context_window",
    "cosine_similarity",
    # Pruning
    "ContextPruner",
    # Memory
    "AsyncioScheduler",
    "ConversationMemory",
    "InMemorySessionStore",
    "JsonFileSnapshotSink",
    "ManualScheduler",
    "MemoryLifecycle",
    "SessionStore",
    "extract_topics",
    # Models
    "Chunk",
    "ChunkMetadata",
    "ContextSizeConfig",
    "Feedback",
    "Language",
    "PipelineRequest",
    "PipelineResponse",
    "PruneResult",
    "Query",
    "QueryComplexity",
    "QueryIntent",
    "RetrievalStage",
    "SearchFilters",
    "SearchResult",
    "SemanticSearchResult",
    "StagedSearchResult",
    # Errors
    "AnalysisFailure",
    "ContextPipelineError",
    "InputError",
    "PruningDegradation",
    "RetrievalFailure",
    "SessionNotFound",
]

# chat_context_pipeline/models/enums.py
"""Enums shared across the pipeline stages."""

from enum import Enum


class QueryIntent(str, Enum):
    """Pragmatic type of a user turn."""

    FACTUAL = "FACTUAL"  # counts, dates, who/where/when
    SYNTHESIS = "SYNTHESIS"  # capabilities, competencies, overviews
    EXPLORATION = "EXPLORATION"  # tell me more, explain, describe
    COMPARISON = "COMPARISON"  # versus, differences, alternatives
    CASUAL = "CASUAL"  # greetings and anything unmatched


class QueryComplexity(str, Enum):
    """Coarse complexity tier used to scale the context budget."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RetrievalStage(str, Enum):
    """Granularity of one pass of the retrieval cascade, strictest first."""

    FINE = "fine"
    MEDIUM = "medium"
    COARSE = "coarse"


class Language(str, Enum):
    """Languages with a registered rule set."""

    POLISH = "polish"
    ENGLISH = "english"


class MessageRole(str, Enum):
    """Conversation message roles kept in memory."""

    USER = "user"
    ASSISTANT = "assistant"


class PipelineStage(str, Enum):
    """Stage names reported in response metadata."""

    QUERY_ANALYSIS = "query-analysis"
    CONTEXT_SIZING = "context-sizing"
    CACHE_LOOKUP = "cache-lookup"
    RETRIEVAL = "retrieval"
    CONTEXT_PRUNING = "context-pruning"
    CONVERSATION_MEMORY = "conversation-memory"
    ASSEMBLY = "assembly"
    COMPLETION = "completion"


class Feedback(str, Enum):
    """User feedback on an assistant message."""

    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"

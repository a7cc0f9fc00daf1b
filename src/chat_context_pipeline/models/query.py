# chat_context_pipeline/models/query.py
"""Query analysis and context budget models."""

from pydantic import BaseModel, ConfigDict, Field

from chat_context_pipeline.models.enums import Language, QueryComplexity, QueryIntent


class IntentResult(BaseModel):
    """Output of an intent classifier."""

    label: QueryIntent
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class Query(BaseModel):
    """A single analyzed user turn. Created per request, never stored."""

    text: str
    language: Language = Language.ENGLISH
    intent: QueryIntent = QueryIntent.CASUAL
    complexity: QueryComplexity = QueryComplexity.MEDIUM
    confidence: float = Field(default=0.5, ge=0.0, le=1.0, description="Intent confidence")

    @property
    def length(self) -> int:
        return len(self.text)


class ContextSizeConfig(BaseModel):
    """Token and chunk budget planned for one request."""

    model_config = ConfigDict(frozen=True)

    max_tokens: int = Field(..., ge=0, description="Evidence token budget")
    chunk_count: int = Field(..., ge=0, description="Target number of evidence chunks")
    diversity_boost: bool = Field(default=False, description="Prefer distinct content types")
    query_expansion: bool = Field(default=False, description="Expand the query with intent keywords")
    top_k_multiplier: float = Field(default=1.0, ge=0.0, description="Scales the candidate count")

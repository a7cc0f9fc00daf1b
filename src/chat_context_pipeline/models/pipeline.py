# chat_context_pipeline/models/pipeline.py
"""Request/response models of the pipeline entry point."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from chat_context_pipeline.base_models import DictCompatModel
from chat_context_pipeline.models.chunk import SearchResult
from chat_context_pipeline.models.enums import Language, MessageRole, PipelineStage, QueryIntent


class ChatMessage(BaseModel):
    """A message as sent by the chat UI."""

    role: MessageRole
    content: str = ""


class PipelineRequest(BaseModel):
    """Input of one chat turn."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    session_id: str = Field(default="", alias="sessionId")


class AssembledPrompt(BaseModel):
    """Everything the completion call needs for one turn."""

    system_prompt: str
    user_message: str
    history: list[ChatMessage] = Field(default_factory=list)
    evidence: list[SearchResult] = Field(default_factory=list, description="Pruned evidence, highest score first")
    evidence_text: str = ""
    history_text: str = ""
    intent: QueryIntent = QueryIntent.CASUAL
    language: Language = Language.ENGLISH

    @property
    def context_length(self) -> int:
        return len(self.evidence_text) + len(self.history_text)


class CompletionResult(BaseModel):
    """What an injected completion function returns."""

    content: str
    tokens_used: int = Field(default=0, ge=0)


class ResponseMetadata(DictCompatModel):
    """Metadata asserted on by the chat UI and automated test suites."""

    query_intent: QueryIntent = Field(alias="queryIntent")
    context_length: int = Field(default=0, ge=0, alias="contextLength")
    response_time: float = Field(default=0.0, ge=0.0, alias="responseTime", description="Milliseconds")
    tokens_used: int = Field(default=0, ge=0, alias="tokensUsed")
    session_id: str = Field(alias="sessionId")
    conversation_length: int = Field(default=0, ge=0, alias="conversationLength")
    pipeline_stages: list[PipelineStage] = Field(default_factory=list, alias="pipelineStages")
    cache_hit: bool = Field(default=False, alias="cacheHit")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    language: Language = Language.ENGLISH
    message_id: str | None = Field(default=None, alias="messageId")


class PipelineResponse(DictCompatModel):
    """Output of one chat turn."""

    content: str
    metadata: ResponseMetadata

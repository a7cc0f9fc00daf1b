# chat_context_pipeline/models/conversation.py
"""Conversation memory models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from chat_context_pipeline.models.enums import Feedback, MessageRole, QueryIntent


def _new_message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MessageMetadata(BaseModel):
    """Optional per-message facts recorded by the pipeline."""

    query_intent: QueryIntent | None = None
    context_length: int | None = Field(default=None, ge=0)
    response_time_ms: float | None = Field(default=None, ge=0)


class ConversationMessage(BaseModel):
    """A single remembered message. Append-only within a session."""

    message_id: str = Field(default_factory=_new_message_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    topics: set[str] = Field(default_factory=set)
    metadata: MessageMetadata | None = None


class ConversationSession(BaseModel):
    """
    Session-scoped history.

    ``messages`` is capped by the owning memory; ``total_messages`` counts
    every append and is never decremented when old messages are trimmed.
    """

    session_id: str
    messages: list[ConversationMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    last_active: datetime = Field(default_factory=_utcnow)
    total_messages: int = Field(default=0, ge=0)
    dominant_topics: list[str] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """Read-only projection of a session."""

    session_id: str
    message_count: int
    dominant_topics: list[str]
    session_duration_seconds: float
    last_active: datetime


class MemoryStats(BaseModel):
    """Aggregate figures across all sessions held by a memory."""

    total_sessions: int = 0
    active_sessions: int = 0
    average_messages_per_session: float = 0.0
    most_common_topics: list[str] = Field(default_factory=list)


class FeedbackRecord(BaseModel):
    """Feedback on one assistant message, keyed by message id."""

    session_id: str
    message_id: str
    feedback: Feedback
    recorded_at: datetime = Field(default_factory=_utcnow)

# chat_context_pipeline/memory/conversation.py
"""
ConversationMemory - per-session message history with topic-aware recall.

Each session keeps the newest ``max_messages`` messages, a monotonic
``total_messages`` counter and the five most frequent topics. History
recall always includes the last three messages and adds earlier ones whose
topics overlap the current query.

Expiry is best-effort: ``sweep_expired`` removes sessions idle for longer
than the TTL, and nothing else checks expiry. A session past its TTL stays
readable until the next sweep, so reads may be up to one sweep interval
stale. Reads never mutate state.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from chat_context_pipeline.config import MAX_SESSION_MESSAGES, SESSION_TTL_SECONDS
from chat_context_pipeline.exceptions import InputError
from chat_context_pipeline.memory.store import InMemorySessionStore, SessionStore
from chat_context_pipeline.memory.topics import DEFAULT_TOPIC_RULES, TopicRule, extract_topics
from chat_context_pipeline.models.conversation import (
    ConversationMessage,
    ConversationSession,
    MemoryStats,
    MessageMetadata,
    SessionSummary,
)
from chat_context_pipeline.models.enums import MessageRole

logger = logging.getLogger(__name__)

RECENT_MESSAGES_ALWAYS_KEPT = 3
DOMINANT_TOPIC_COUNT = 5
COMMON_TOPIC_COUNT = 10
HISTORY_PREVIEW_CHARS = 150


def _utcnow() -> datetime:
    return datetime.now(UTC)


def time_ago(then: datetime, now: datetime) -> str:
    """Compact relative time: 'just now', '5m ago', '2h ago', '3d ago'."""
    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def topic_overlap(message_topics: set[str], query_topics: set[str]) -> float:
    """|intersection| / max(|message topics|, |query topics|, 1)."""
    shared = len(message_topics & query_topics)
    return shared / max(len(message_topics), len(query_topics), 1)


def dominant_topics(messages: list[ConversationMessage], limit: int = DOMINANT_TOPIC_COUNT) -> list[str]:
    """Most frequent topics; ties keep first-appearance order."""
    counts: Counter[str] = Counter()
    for message in messages:
        counts.update(sorted(message.topics))
    return [topic for topic, _ in counts.most_common(limit)]


class ConversationMemory:
    """Session-scoped conversation history over a SessionStore."""

    def __init__(
        self,
        store: SessionStore | None = None,
        max_messages: int = MAX_SESSION_MESSAGES,
        session_ttl: float = SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        topic_rules: tuple[TopicRule, ...] | list[TopicRule] = DEFAULT_TOPIC_RULES,
    ):
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        if session_ttl <= 0:
            raise ValueError("session_ttl must be positive")
        self.store = store if store is not None else InMemorySessionStore()
        self.max_messages = max_messages
        self.session_ttl = session_ttl
        self.clock = clock
        self.topic_rules = topic_rules

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def add_message(
        self,
        session_id: str,
        role: MessageRole | str,
        content: str,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> ConversationMessage:
        """
        Append a message, creating the session on first use.

        Topics are extracted from the content, dominant topics recomputed
        over the full list, then the list is trimmed to ``max_messages``.
        The whole update runs under the session's lock.
        """
        if not isinstance(session_id, str) or not session_id.strip():
            raise InputError("session_id must be a non-empty string")
        if not isinstance(content, str) or not content.strip():
            raise InputError("message content must be a non-empty string")
        try:
            role = MessageRole(role)
        except ValueError as e:
            raise InputError(f"unknown message role: {role!r}") from e
        if isinstance(metadata, dict):
            metadata = MessageMetadata.model_validate(metadata)

        async with self.store.lock(session_id):
            now = self.clock()
            session = await self.store.get(session_id)
            if session is None:
                session = ConversationSession(session_id=session_id, created_at=now, last_active=now)
                logger.debug("Created conversation session %s", session_id)

            message = ConversationMessage(
                role=role,
                content=content,
                timestamp=now,
                topics=extract_topics(content, self.topic_rules),
                metadata=metadata,
            )
            session.messages.append(message)
            session.last_active = now
            session.total_messages += 1
            session.dominant_topics = dominant_topics(session.messages)
            if len(session.messages) > self.max_messages:
                session.messages = session.messages[-self.max_messages :]

            await self.store.put(session)
        return message

    async def clear_session(self, session_id: str) -> bool:
        return await self.store.evict(session_id)

    async def sweep_expired(self) -> list[str]:
        """Evict sessions idle for longer than the TTL. Returns the evicted ids."""
        now = self.clock()
        evicted = []
        for session in await self.store.list():
            if self._idle_seconds(session, now) > self.session_ttl:
                if await self.store.evict(session.session_id):
                    evicted.append(session.session_id)
        if evicted:
            logger.info("Evicted %d expired conversation sessions", len(evicted))
        return evicted

    async def restore(self, sessions: list[ConversationSession]) -> int:
        """Load sessions from a snapshot. Sessions already present are left alone."""
        restored = 0
        for session in sessions:
            async with self.store.lock(session.session_id):
                if await self.store.get(session.session_id) is not None:
                    continue
                if len(session.messages) > self.max_messages:
                    session.messages = session.messages[-self.max_messages :]
                await self.store.put(session)
                restored += 1
        return restored

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_relevant_history(
        self,
        session_id: str,
        current_query: str,
        max_messages: int = 5,
        relevance_threshold: float = 0.3,
    ) -> list[ConversationMessage]:
        """
        Messages worth showing alongside ``current_query``, oldest first.

        The last three messages always qualify. Earlier messages qualify
        when their topic overlap with the query reaches the threshold. At
        most ``max_messages`` of the newest qualifying messages are returned.
        """
        session = await self.store.get(session_id)
        if session is None or max_messages <= 0:
            return []

        query_topics = extract_topics(current_query, self.topic_rules)
        recent_from = len(session.messages) - RECENT_MESSAGES_ALWAYS_KEPT
        relevant = [
            message
            for index, message in enumerate(session.messages)
            if index >= recent_from or topic_overlap(message.topics, query_topics) >= relevance_threshold
        ]
        return relevant[-max_messages:]

    async def get_session_summary(self, session_id: str) -> SessionSummary | None:
        session = await self.store.get(session_id)
        if session is None:
            return None
        duration = (session.last_active - session.messages[0].timestamp).total_seconds() if session.messages else 0.0
        return SessionSummary(
            session_id=session.session_id,
            message_count=session.total_messages,
            dominant_topics=list(session.dominant_topics),
            session_duration_seconds=max(0.0, duration),
            last_active=session.last_active,
        )

    async def get_conversational_context(self, session_id: str, current_query: str) -> str:
        """Relevant history rendered as a prompt block, or '' when there is none."""
        return self.render_history(await self.get_relevant_history(session_id, current_query))

    def render_history(self, history: list[ConversationMessage]) -> str:
        """``### CONVERSATION HISTORY`` block for already-selected messages."""
        if not history:
            return ""
        now = self.clock()
        lines = ["\n### CONVERSATION HISTORY\n"]
        for message in history:
            preview = message.content[:HISTORY_PREVIEW_CHARS]
            if len(message.content) > HISTORY_PREVIEW_CHARS:
                preview += "..."
            lines.append(f"- {message.role.value.upper()} ({time_ago(message.timestamp, now)}): {preview}\n")
        return "".join(lines)

    async def get_active_sessions(self) -> list[ConversationSession]:
        """Sessions within the TTL, most recently active first."""
        now = self.clock()
        active = [s for s in await self.store.list() if self._idle_seconds(s, now) < self.session_ttl]
        return sorted(active, key=lambda s: s.last_active, reverse=True)

    async def get_performance_metrics(self) -> MemoryStats:
        now = self.clock()
        sessions = await self.store.list()
        if not sessions:
            return MemoryStats()

        topic_counts: Counter[str] = Counter()
        for session in sessions:
            topic_counts.update(session.dominant_topics)

        return MemoryStats(
            total_sessions=len(sessions),
            active_sessions=sum(1 for s in sessions if self._idle_seconds(s, now) < self.session_ttl),
            average_messages_per_session=sum(s.total_messages for s in sessions) / len(sessions),
            most_common_topics=[topic for topic, _ in topic_counts.most_common(COMMON_TOPIC_COUNT)],
        )

    async def snapshot(self) -> list[ConversationSession]:
        """Deep copies of every session, safe to serialize while writes continue."""
        return [session.model_copy(deep=True) for session in await self.store.list()]

    @staticmethod
    def _idle_seconds(session: ConversationSession, now: datetime) -> float:
        return (now - session.last_active).total_seconds()

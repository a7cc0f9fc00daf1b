# chat_context_pipeline/memory/__init__.py
"""Conversation memory: session store, topic tagging, lifecycle."""

from chat_context_pipeline.memory.conversation import ConversationMemory, dominant_topics, time_ago, topic_overlap
from chat_context_pipeline.memory.lifecycle import (
    AsyncioScheduler,
    JsonFileSnapshotSink,
    ManualScheduler,
    MemoryLifecycle,
    Scheduler,
    SnapshotSink,
)
from chat_context_pipeline.memory.store import InMemorySessionStore, SessionStore
from chat_context_pipeline.memory.topics import DEFAULT_TOPIC_RULES, TopicRule, extract_topics

__all__ = [
    "AsyncioScheduler",
    "ConversationMemory",
    "DEFAULT_TOPIC_RULES",
    "InMemorySessionStore",
    "JsonFileSnapshotSink",
    "ManualScheduler",
    "MemoryLifecycle",
    "Scheduler",
    "SessionStore",
    "SnapshotSink",
    "TopicRule",
    "dominant_topics",
    "extract_topics",
    "time_ago",
    "topic_overlap",
]

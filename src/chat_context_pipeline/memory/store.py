# chat_context_pipeline/memory/store.py
"""
Session storage behind a small async interface.

ConversationMemory only talks to a SessionStore, so a shared or persistent
backend can replace the in-memory map without touching memory logic. The
store also owns per-session locking: ``lock(session_id)`` guards the
append/recompute/trim critical section for one session while other
sessions proceed concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from chat_context_pipeline.exceptions import SessionNotFound
from chat_context_pipeline.models.conversation import ConversationSession

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Keyed storage for conversation sessions."""

    async def get(self, session_id: str) -> ConversationSession | None: ...

    async def put(self, session: ConversationSession) -> None: ...

    async def evict(self, session_id: str) -> bool: ...

    async def list(self) -> list[ConversationSession]: ...

    def lock(self, session_id: str) -> AbstractAsyncContextManager: ...


class InMemorySessionStore:
    """
    Dict-backed store with one ``asyncio.Lock`` per session id.

    Sessions are held by reference; callers mutate them only inside
    ``lock(session_id)`` and write them back with ``put``. Data lives only
    in this process.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, session_id: str) -> ConversationSession | None:
        return self._sessions.get(session_id)

    async def require(self, session_id: str) -> ConversationSession:
        """Like ``get`` but raises SessionNotFound for unknown ids."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def put(self, session: ConversationSession) -> None:
        self._sessions[session.session_id] = session

    async def evict(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]
        return removed

    async def list(self) -> list[ConversationSession]:
        return list(self._sessions.values())

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

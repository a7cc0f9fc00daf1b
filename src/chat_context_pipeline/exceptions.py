# chat_context_pipeline/exceptions.py
"""
Exception hierarchy for the context pipeline.

Only InputError ever reaches the caller of the pipeline entry point. The
other kinds are raised inside a stage and absorbed by the stage that owns
the fallback, so the assistant can always attempt a reply.
"""

from __future__ import annotations


class ContextPipelineError(Exception):
    """Base class for all pipeline errors."""


class InputError(ContextPipelineError, ValueError):
    """Missing or malformed query, message list or session id."""


class RetrievalFailure(ContextPipelineError):
    """Embedding or vector search failed, timed out, or returned malformed data."""


class AnalysisFailure(ContextPipelineError):
    """Intent or complexity classification failed."""


class PruningDegradation(ContextPipelineError):
    """A pruning score could not be computed; defaults were used instead."""


class SessionNotFound(ContextPipelineError, KeyError):
    """Raised by store lookups that require an existing session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"

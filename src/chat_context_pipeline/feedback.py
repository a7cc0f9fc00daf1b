# chat_context_pipeline/feedback.py
"""Helpful / not-helpful feedback on assistant messages, keyed by message id."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from chat_context_pipeline.exceptions import InputError
from chat_context_pipeline.models.conversation import FeedbackRecord
from chat_context_pipeline.models.enums import Feedback

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FeedbackLog:
    """
    In-process feedback record. Analytics over it happen elsewhere.

    A second record for the same message replaces the first.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock
        self._records: dict[str, FeedbackRecord] = {}

    def record(self, session_id: str, message_id: str, feedback: Feedback | str) -> FeedbackRecord:
        if not session_id or not message_id:
            raise InputError("session_id and message_id are required")
        try:
            feedback = Feedback(feedback)
        except ValueError as e:
            raise InputError(f"unknown feedback value: {feedback!r}") from e

        entry = FeedbackRecord(
            session_id=session_id,
            message_id=message_id,
            feedback=feedback,
            recorded_at=self.clock(),
        )
        self._records[message_id] = entry
        logger.debug("Recorded %s feedback for %s", feedback.value, message_id)
        return entry

    def get(self, message_id: str) -> FeedbackRecord | None:
        return self._records.get(message_id)

    def for_session(self, session_id: str) -> list[FeedbackRecord]:
        return [r for r in self._records.values() if r.session_id == session_id]

    def __len__(self) -> int:
        return len(self._records)

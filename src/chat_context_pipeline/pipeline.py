# chat_context_pipeline/pipeline.py
"""
ChatContextPipeline - one chat turn from request to response.

Stages, in order:
    query-analysis -> context-sizing -> cache-lookup -> retrieval
    -> context-pruning -> conversation-memory -> assembly -> completion

Only malformed input is rejected (InputError). Every other failure is
absorbed by the stage that owns it so the assistant always attempts a
reply: no evidence, no history, or an apology when the completion call
itself fails. Degradation shows up in the metadata only (contextLength,
confidence); the reply text never carries internal error detail.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from chat_context_pipeline.assembler import ContextAssembler
from chat_context_pipeline.cache import ContextCache
from chat_context_pipeline.config import DEFAULT_MIN_SCORE
from chat_context_pipeline.exceptions import InputError
from chat_context_pipeline.feedback import FeedbackLog
from chat_context_pipeline.intent.classifier import IntentClassifier, analyze_query
from chat_context_pipeline.memory.conversation import ConversationMemory
from chat_context_pipeline.models.chunk import SearchFilters, SearchResult, estimate_tokens
from chat_context_pipeline.models.conversation import ConversationMessage, FeedbackRecord, MessageMetadata
from chat_context_pipeline.models.enums import Feedback, MessageRole, PipelineStage
from chat_context_pipeline.models.pipeline import (
    AssembledPrompt,
    CompletionResult,
    PipelineRequest,
    PipelineResponse,
    ResponseMetadata,
)
from chat_context_pipeline.models.pruning import PruneResult
from chat_context_pipeline.planner import ContextSizePlanner
from chat_context_pipeline.prompts import get_prompts
from chat_context_pipeline.pruning.pruner import ContextPruner
from chat_context_pipeline.retrieval.engine import RetrievalEngine

logger = logging.getLogger(__name__)

CompleteFn = Callable[[AssembledPrompt], Awaitable[CompletionResult | str]]

EVIDENCE_CONFIDENCE_BONUS = 0.2
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95
FAILED_COMPLETION_CONFIDENCE = 0.1
EXTRACTIVE_MAX_CHARS = 600


def evidence_confidence(pruned: PruneResult) -> float:
    """clamp(mean kept score + 0.2, 0.3, 0.95); 0.3 with no evidence."""
    if not pruned.pruned_chunks:
        return MIN_CONFIDENCE
    mean = sum(r.score for r in pruned.pruned_chunks) / len(pruned.pruned_chunks)
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, mean + EVIDENCE_CONFIDENCE_BONUS))


async def extractive_completion(prompt: AssembledPrompt) -> CompletionResult:
    """
    Offline completion: quote the best evidence chunk.

    Used when no language model is wired in. Replies in the prompt's
    language and says so plainly when there is no evidence.
    """
    prompts = get_prompts(prompt.language)
    if not prompt.evidence:
        content = prompts.no_information_reply
    else:
        top = max(prompt.evidence, key=lambda r: r.score)
        excerpt = top.chunk.text[:EXTRACTIVE_MAX_CHARS]
        if len(top.chunk.text) > EXTRACTIVE_MAX_CHARS:
            excerpt += "..."
        content = f"{prompts.evidence_reply_prefix}\n\n{excerpt}"
    return CompletionResult(content=content, tokens_used=estimate_tokens(content))


class ChatContextPipeline:
    """
    Request-scoped orchestration over the pipeline stages.

    Usage:
        pipeline = ChatContextPipeline(RetrievalEngine(embedder, index), ConversationMemory())
        response = await pipeline.process({"messages": [...], "sessionId": "abc"})
        response.metadata["queryIntent"]
    """

    def __init__(
        self,
        engine: RetrievalEngine,
        memory: ConversationMemory | None = None,
        classifier: IntentClassifier | None = None,
        planner: ContextSizePlanner | None = None,
        pruner: ContextPruner | None = None,
        cache: ContextCache | None = None,
        assembler: ContextAssembler | None = None,
        complete_fn: CompleteFn | None = None,
        feedback_log: FeedbackLog | None = None,
        filters: SearchFilters | None = None,
        min_score: float = DEFAULT_MIN_SCORE,
    ):
        self.engine = engine
        self.memory = memory if memory is not None else ConversationMemory()
        self.classifier = classifier
        self.planner = planner or ContextSizePlanner()
        self.pruner = pruner or ContextPruner()
        self.cache = cache if cache is not None else ContextCache()
        self.assembler = assembler or ContextAssembler()
        self.complete_fn = complete_fn or extractive_completion
        self.feedback_log = feedback_log if feedback_log is not None else FeedbackLog()
        self.filters = filters
        self.min_score = min_score

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate(request: PipelineRequest | dict[str, Any]) -> PipelineRequest:
        if isinstance(request, dict):
            try:
                request = PipelineRequest.model_validate(request)
            except ValidationError as e:
                raise InputError(f"malformed request: {e.error_count()} invalid field(s)") from e
        if not isinstance(request, PipelineRequest):
            raise InputError("request must be a PipelineRequest or a dict")
        if not request.messages:
            raise InputError("messages must not be empty")
        if not request.messages[-1].content or not request.messages[-1].content.strip():
            raise InputError("the last message must have content")
        if not request.session_id or not request.session_id.strip():
            raise InputError("sessionId is required")
        return request

    # ------------------------------------------------------------------ #
    # Absorbing stage wrappers
    # ------------------------------------------------------------------ #

    async def _retrieve(self, text, plan, intent) -> list[SearchResult]:
        try:
            search = await self.engine.retrieve(text, plan, intent, filters=self.filters, min_score=self.min_score)
        except Exception as e:
            logger.warning("Retrieval failed, answering without evidence: %s", e)
            return []
        best_stage = getattr(search, "best_stage", None)
        if best_stage is not None:
            logger.debug(
                "Retrieved %d results, best stage %s (confidence %.2f)",
                len(search.results),
                best_stage.value,
                search.confidence,
            )
        return list(search.results)

    async def _history(self, session_id: str, text: str) -> list[ConversationMessage]:
        try:
            return await self.memory.get_relevant_history(session_id, text)
        except Exception as e:
            logger.warning("Conversation history unavailable for %s: %s", session_id, e)
            return []

    async def _complete(self, prompt: AssembledPrompt) -> CompletionResult | None:
        try:
            result = await self.complete_fn(prompt)
        except Exception as e:
            logger.warning("Completion failed: %s", e)
            return None
        if isinstance(result, str):
            result = CompletionResult(content=result, tokens_used=estimate_tokens(result))
        if not isinstance(result, CompletionResult) or not result.content.strip():
            logger.warning("Completion returned no content")
            return None
        return result

    async def _remember(self, session_id: str, role: MessageRole, content: str, metadata: MessageMetadata):
        try:
            return await self.memory.add_message(session_id, role, content, metadata)
        except Exception as e:
            logger.warning("Could not store %s message for %s: %s", role.value, session_id, e)
            return None

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    async def process(self, request: PipelineRequest | dict[str, Any]) -> PipelineResponse:
        """Run one turn. Raises InputError for malformed input and nothing else."""
        request = self._validate(request)
        start = time.perf_counter()
        session_id = request.session_id
        text = request.messages[-1].content.strip()
        stages: list[PipelineStage] = []

        query = analyze_query(text, self.classifier)
        stages.append(PipelineStage.QUERY_ANALYSIS)

        plan = self.planner.plan(query.intent, text)
        stages.append(PipelineStage.CONTEXT_SIZING)

        results = self.cache.get(text, query.intent, plan.max_tokens)
        stages.append(PipelineStage.CACHE_LOOKUP)
        cache_hit = results is not None
        if results is None:
            results = await self._retrieve(text, plan, query.intent)
            stages.append(PipelineStage.RETRIEVAL)
            self.cache.put(text, query.intent, plan.max_tokens, results)

        pruned = self.pruner.prune(results, text, plan.max_tokens)
        stages.append(PipelineStage.CONTEXT_PRUNING)

        history = await self._history(session_id, text)
        history_text = self.memory.render_history(history)
        stages.append(PipelineStage.CONVERSATION_MEMORY)

        prompt = self.assembler.assemble(query, pruned, history_text, query.language, history)
        stages.append(PipelineStage.ASSEMBLY)

        completion = await self._complete(prompt)
        stages.append(PipelineStage.COMPLETION)
        if completion is None:
            content = get_prompts(query.language).apology_reply
            completion_tokens = 0
            confidence = FAILED_COMPLETION_CONFIDENCE
        else:
            content = completion.content
            completion_tokens = completion.tokens_used
            confidence = evidence_confidence(pruned)

        response_time_ms = (time.perf_counter() - start) * 1000
        user_meta = MessageMetadata(query_intent=query.intent, context_length=prompt.context_length)
        await self._remember(session_id, MessageRole.USER, text, user_meta)
        assistant_meta = user_meta.model_copy(update={"response_time_ms": response_time_ms})
        assistant_message = await self._remember(session_id, MessageRole.ASSISTANT, content, assistant_meta)

        logger.info(
            "Turn %s: %s, %d evidence chunks, %d history messages, %.0fms%s",
            session_id,
            query.intent.value,
            len(pruned.pruned_chunks),
            len(history),
            response_time_ms,
            " (cached)" if cache_hit else "",
        )
        return PipelineResponse(
            content=content,
            metadata=ResponseMetadata(
                query_intent=query.intent,
                context_length=prompt.context_length,
                response_time=response_time_ms,
                tokens_used=pruned.final_tokens + completion_tokens,
                session_id=session_id,
                conversation_length=len(history),
                pipeline_stages=stages,
                cache_hit=cache_hit,
                confidence=confidence,
                language=query.language,
                message_id=assistant_message.message_id if assistant_message else None,
            ),
        )

    def record_feedback(self, session_id: str, message_id: str, feedback: Feedback | str) -> FeedbackRecord:
        return self.feedback_log.record(session_id, message_id, feedback)

# chat_context_pipeline/assembler.py
"""
ContextAssembler - builds the final prompt for one turn.

Pure: combines the analyzed query, the pruned evidence and the relevant
conversation history into an AssembledPrompt. The system prompt carries
an intent-specific mode line and instructions in the query's language,
followed by the evidence grouped by content type and the history block.
"""

from __future__ import annotations

from chat_context_pipeline.models.conversation import ConversationMessage
from chat_context_pipeline.models.enums import Language
from chat_context_pipeline.models.pipeline import AssembledPrompt, ChatMessage
from chat_context_pipeline.models.pruning import PruneResult
from chat_context_pipeline.models.query import Query
from chat_context_pipeline.prompts import LocalePrompts, get_prompts
from chat_context_pipeline.retrieval.formatting import build_context_window

DEFAULT_ASSISTANT_NAME = "Portfolio AI"


class ContextAssembler:
    """Renders system prompt, evidence and history for the completion call."""

    def __init__(
        self,
        assistant_name: str = DEFAULT_ASSISTANT_NAME,
        include_disclaimer: bool = False,
        prompts: dict[Language, LocalePrompts] | None = None,
    ):
        self.assistant_name = assistant_name
        self.include_disclaimer = include_disclaimer
        self._prompts = prompts

    def prompts_for(self, language: Language) -> LocalePrompts:
        if self._prompts and language in self._prompts:
            return self._prompts[language]
        return get_prompts(language)

    def build_system_prompt(self, query: Query, evidence_text: str, history_text: str, language: Language) -> str:
        p = self.prompts_for(language)
        parts = [
            p.identity.format(assistant_name=self.assistant_name),
            "",
            f"{p.mode_label}: {p.modes[query.intent]}",
            f"{p.language_label}: {p.language_name}",
            f"{p.intent_label}: {query.intent.value}",
            "",
            p.instructions[query.intent],
            "",
            f"{p.context_label}:",
            evidence_text.strip() or p.no_context,
        ]
        if history_text:
            parts.append(history_text.rstrip())
        parts += ["", p.rules]
        if self.include_disclaimer:
            parts += ["", p.disclaimer_instruction.format(disclaimer=p.disclaimer)]
        return "\n".join(parts)

    def assemble(
        self,
        query: Query,
        pruned: PruneResult,
        history_text: str = "",
        language: Language | None = None,
        history: list[ConversationMessage] | None = None,
    ) -> AssembledPrompt:
        """
        Build the prompt for ``query``.

        Every pruned chunk is rendered; the pruner already enforced the
        budget. ``language`` defaults to the query's detected language.
        """
        language = language or query.language
        evidence_text = build_context_window(pruned.pruned_chunks, max_tokens=None)
        return AssembledPrompt(
            system_prompt=self.build_system_prompt(query, evidence_text, history_text, language),
            user_message=query.text,
            history=[ChatMessage(role=m.role, content=m.content) for m in history or []],
            evidence=list(pruned.pruned_chunks),
            evidence_text=evidence_text,
            history_text=history_text,
            intent=query.intent,
            language=language,
        )

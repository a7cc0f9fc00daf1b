# tests/test_assembler.py
"""Tests for ContextAssembler and the localized prompt tables."""

import pytest

from chat_context_pipeline.assembler import ContextAssembler
from chat_context_pipeline.models import (
    ConversationMessage,
    Language,
    MessageRole,
    PruneResult,
    Query,
    QueryIntent,
)
from chat_context_pipeline.prompts import ENGLISH_PROMPTS, POLISH_PROMPTS, get_prompts
from tests.fakes import make_result

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _query(text="porównaj VW i Polsat", language=Language.POLISH, intent=QueryIntent.COMPARISON):
    return Query(text=text, language=language, intent=intent)


def _pruned(*results):
    tokens = sum(r.tokens for r in results)
    return PruneResult(pruned_chunks=list(results), original_tokens=tokens, final_tokens=tokens)


EVIDENCE = (
    make_result("vw-1", 0.9, text="VW Digital design system", content_type="work"),
    make_result("bank-1", 0.6, text="Bank app prototype", content_type="experiment"),
)


class TestAssemble:
    def test_polish_comparison_prompt(self):
        prompt = ContextAssembler().assemble(_query(), _pruned(*EVIDENCE))

        assert "TRYB KONWERSACJI: PORÓWNAWCZY - Analizuj różnice i podobieństwa" in prompt.system_prompt
        assert "JĘZYK: Polish" in prompt.system_prompt
        assert "INTENT PYTANIA: COMPARISON" in prompt.system_prompt
        assert "INSTRUKCJE PORÓWNAWCZE:" in prompt.system_prompt
        assert "### WORK" in prompt.system_prompt
        assert "- VW Digital design system (relevance: 90.0%)" in prompt.system_prompt
        assert prompt.user_message == "porównaj VW i Polsat"
        assert prompt.intent == QueryIntent.COMPARISON
        assert prompt.language == Language.POLISH

    def test_english_factual_prompt(self):
        query = _query("how many people were on the team?", Language.ENGLISH, QueryIntent.FACTUAL)
        prompt = ContextAssembler().assemble(query, _pruned(*EVIDENCE))

        assert "CONVERSATION MODE: PRECISE" in prompt.system_prompt
        assert "FACTUAL INSTRUCTIONS:" in prompt.system_prompt
        assert "ANSWER RULES:" in prompt.system_prompt
        assert "TRYB" not in prompt.system_prompt

    def test_evidence_grouped_and_kept(self):
        prompt = ContextAssembler().assemble(_query(), _pruned(*EVIDENCE))
        assert prompt.evidence_text.index("### WORK") < prompt.evidence_text.index("### EXPERIMENT")
        assert [r.chunk.id for r in prompt.evidence] == ["vw-1", "bank-1"]

    def test_every_pruned_chunk_is_rendered(self):
        many = [make_result(f"c{i}", 0.8, text="x" * 400, content_type="work") for i in range(30)]
        prompt = ContextAssembler().assemble(_query(), _pruned(*many))
        assert prompt.evidence_text.count("- x") == 30

    def test_no_evidence(self):
        prompt = ContextAssembler().assemble(_query(), PruneResult())
        assert prompt.evidence_text == ""
        assert POLISH_PROMPTS.no_context in prompt.system_prompt
        assert prompt.context_length == 0

    def test_history_block_and_context_length(self):
        history_text = "\n### CONVERSATION HISTORY\n- USER (just now): cześć\n"
        history = [ConversationMessage(role=MessageRole.USER, content="cześć")]
        prompt = ContextAssembler().assemble(_query(), _pruned(*EVIDENCE), history_text, history=history)

        assert "### CONVERSATION HISTORY" in prompt.system_prompt
        assert prompt.context_length == len(prompt.evidence_text) + len(history_text)
        assert [(m.role, m.content) for m in prompt.history] == [(MessageRole.USER, "cześć")]

    def test_language_override(self):
        prompt = ContextAssembler().assemble(_query(), _pruned(), language=Language.ENGLISH)
        assert prompt.language == Language.ENGLISH
        assert "CONVERSATION MODE: COMPARATIVE" in prompt.system_prompt

    def test_disclaimer_is_opt_in(self):
        plain = ContextAssembler().assemble(_query(), _pruned())
        with_disclaimer = ContextAssembler(include_disclaimer=True).assemble(_query(), _pruned())
        assert POLISH_PROMPTS.disclaimer not in plain.system_prompt
        assert POLISH_PROMPTS.disclaimer in with_disclaimer.system_prompt

    def test_assistant_name(self):
        prompt = ContextAssembler(assistant_name="Eryk AI").assemble(_query(), _pruned())
        assert prompt.system_prompt.startswith("Jesteś Eryk AI")

    def test_custom_prompt_table(self):
        custom = ENGLISH_PROMPTS.model_copy(update={"mode_label": "MODE"})
        assembler = ContextAssembler(prompts={Language.ENGLISH: custom})
        prompt = assembler.assemble(_query(language=Language.ENGLISH), _pruned())
        assert "MODE: COMPARATIVE" in prompt.system_prompt
        assert "CONVERSATION MODE" not in prompt.system_prompt


class TestPromptTables:
    @pytest.mark.parametrize("prompts", [POLISH_PROMPTS, ENGLISH_PROMPTS])
    def test_every_intent_has_mode_and_instructions(self, prompts):
        for intent in QueryIntent:
            assert prompts.modes[intent]
            assert prompts.instructions[intent]

    def test_lookup(self):
        assert get_prompts(Language.POLISH) is POLISH_PROMPTS
        assert get_prompts(Language.ENGLISH) is ENGLISH_PROMPTS

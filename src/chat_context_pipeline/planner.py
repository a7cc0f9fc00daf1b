# chat_context_pipeline/planner.py
"""
Context size planning.

Maps (intent, complexity) to a token and chunk budget. The numbers live in
PlannerConfig so a deployment can retune them without touching the
control flow here.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, Field

from chat_context_pipeline.intent.classifier import analyze_query
from chat_context_pipeline.intent.complexity import calculate_complexity
from chat_context_pipeline.models.enums import QueryComplexity, QueryIntent
from chat_context_pipeline.models.query import ContextSizeConfig

logger = logging.getLogger(__name__)


class ComplexityMultiplier(BaseModel):
    """Scaling applied to a base config for one complexity tier."""

    max_tokens: float = 1.0
    chunk_count: float = 1.0
    top_k: float = 1.0


def _default_base_table() -> dict[QueryIntent, ContextSizeConfig]:
    return {
        QueryIntent.FACTUAL: ContextSizeConfig(
            max_tokens=600, chunk_count=3, diversity_boost=False, query_expansion=False, top_k_multiplier=1.0
        ),
        QueryIntent.CASUAL: ContextSizeConfig(
            max_tokens=400, chunk_count=2, diversity_boost=False, query_expansion=False, top_k_multiplier=0.8
        ),
        QueryIntent.EXPLORATION: ContextSizeConfig(
            max_tokens=1200, chunk_count=6, diversity_boost=True, query_expansion=True, top_k_multiplier=1.5
        ),
        QueryIntent.COMPARISON: ContextSizeConfig(
            max_tokens=1800, chunk_count=8, diversity_boost=True, query_expansion=True, top_k_multiplier=2.0
        ),
        QueryIntent.SYNTHESIS: ContextSizeConfig(
            max_tokens=2000, chunk_count=10, diversity_boost=True, query_expansion=True, top_k_multiplier=2.5
        ),
    }


def _default_multipliers() -> dict[QueryComplexity, ComplexityMultiplier]:
    return {
        QueryComplexity.HIGH: ComplexityMultiplier(max_tokens=1.5, chunk_count=1.3, top_k=1.2),
        QueryComplexity.MEDIUM: ComplexityMultiplier(),
        QueryComplexity.LOW: ComplexityMultiplier(max_tokens=0.7, chunk_count=0.8, top_k=0.9),
    }


class PlannerConfig(BaseModel):
    """Tables and floors used by ContextSizePlanner."""

    base_table: dict[QueryIntent, ContextSizeConfig] = Field(default_factory=_default_base_table)
    complexity_multipliers: dict[QueryComplexity, ComplexityMultiplier] = Field(
        default_factory=_default_multipliers
    )
    min_tokens: int = Field(default=300, ge=0)
    min_chunks: int = Field(default=1, ge=0)
    min_top_k_multiplier: float = Field(default=0.5, ge=0.0)


class ContextSizePlanner:
    """Produces the evidence budget for one request. Pure."""

    def __init__(self, config: PlannerConfig | None = None):
        self.config = config or PlannerConfig()

    def plan(self, intent: QueryIntent, query: str, query_length: int = 0) -> ContextSizeConfig:
        """
        Budget for ``intent`` adjusted by the complexity of ``query``.

        ``query_length`` overrides ``len(query)`` for the length indicator
        when positive. Integer fields are floored after scaling and the
        configured minimums are applied last.
        """
        cfg = self.config
        base = cfg.base_table.get(intent) or cfg.base_table[QueryIntent.CASUAL]
        complexity = calculate_complexity(query, query_length)
        multiplier = cfg.complexity_multipliers.get(complexity, ComplexityMultiplier())

        planned = ContextSizeConfig(
            max_tokens=max(math.floor(base.max_tokens * multiplier.max_tokens), cfg.min_tokens),
            chunk_count=max(math.floor(base.chunk_count * multiplier.chunk_count), cfg.min_chunks),
            diversity_boost=base.diversity_boost,
            query_expansion=base.query_expansion,
            top_k_multiplier=max(base.top_k_multiplier * multiplier.top_k, cfg.min_top_k_multiplier),
        )
        logger.debug(
            "Planned %s/%s: %d tokens, %d chunks", intent.value, complexity.value, planned.max_tokens, planned.chunk_count
        )
        return planned


_default_planner = ContextSizePlanner()


def plan_context_size(query: str, query_length: int = 0, intent: QueryIntent | None = None) -> ContextSizeConfig:
    """Plan with the default tables, classifying the query when no intent is given."""
    if intent is None:
        intent = analyze_query(query).intent
    return _default_planner.plan(intent, query, query_length)

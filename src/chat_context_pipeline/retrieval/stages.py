# chat_context_pipeline/retrieval/stages.py
"""
Stage tables for the FINE -> MEDIUM -> COARSE retrieval cascade.

Each intent gets an ordered list of stages. A stage searches with its own
candidate count, a stricter score threshold and its own expansion terms.
Thresholds are margins above the caller's ``min_score``, so with the
default floor of 0.5 a FINE stage with margin 0.35 keeps scores >= 0.85.

The cascade stops after a stage whose relevance and result count clear
that stage's early-stop rule. The numbers live in StagedRetrievalConfig so
a deployment can retune them without touching the control flow.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from chat_context_pipeline.models.chunk import SearchResult, StageResult
from chat_context_pipeline.models.enums import QueryIntent, RetrievalStage
from chat_context_pipeline.retrieval.filters import deduplicate_by_content_id

# Share of the variance/mean ratio subtracted from a stage's mean score.
VARIANCE_PENALTY = 0.1
BEST_STAGE_WEIGHT = 0.6
STAGE_AVERAGE_WEIGHT = 0.2
EARLY_STOP_BONUS = 0.2


# ============================================================================
# Configuration
# ============================================================================


class RetrievalStageConfig(BaseModel):
    """One pass of the cascade."""

    model_config = ConfigDict(frozen=True)

    stage: RetrievalStage
    top_k: int = Field(..., gt=0, description="Results kept by this stage")
    score_margin: float = Field(default=0.0, ge=0.0, le=1.0, description="Added to the caller's min_score")
    expansion_terms: tuple[str, ...] = Field(default=(), description="Appended when the plan enables expansion")

    def threshold(self, min_score: float) -> float:
        return min(1.0, min_score + self.score_margin)


class EarlyStopRule(BaseModel):
    """Stop the cascade after a stage with relevance above ``min_relevance`` and enough results."""

    model_config = ConfigDict(frozen=True)

    min_relevance: float = Field(..., ge=0.0, le=1.0)
    min_results: int = Field(..., ge=1)

    def satisfied_by(self, result: StageResult) -> bool:
        return result.relevance > self.min_relevance and len(result.results) >= self.min_results


def _stage(stage: RetrievalStage, top_k: int, margin: float, *terms: str) -> RetrievalStageConfig:
    return RetrievalStageConfig(stage=stage, top_k=top_k, score_margin=margin, expansion_terms=terms)


def _default_stage_table() -> dict[QueryIntent, list[RetrievalStageConfig]]:
    fine, medium, coarse = RetrievalStage.FINE, RetrievalStage.MEDIUM, RetrievalStage.COARSE
    return {
        QueryIntent.FACTUAL: [
            _stage(fine, 3, 0.35),
            _stage(medium, 6, 0.25, "related", "context"),
        ],
        QueryIntent.CASUAL: [
            _stage(fine, 2, 0.30),
        ],
        QueryIntent.EXPLORATION: [
            _stage(fine, 4, 0.30, "detailed", "process"),
            _stage(medium, 8, 0.20, "related", "context", "methodology"),
            _stage(coarse, 12, 0.10, "background", "overview"),
        ],
        QueryIntent.COMPARISON: [
            _stage(fine, 6, 0.25, "contrast", "versus"),
            _stage(medium, 10, 0.15, "different", "similar", "between"),
            _stage(coarse, 14, 0.05, "background", "context", "overall"),
        ],
        QueryIntent.SYNTHESIS: [
            _stage(fine, 8, 0.25, "abilities", "competencies"),
            _stage(medium, 12, 0.15, "achievements", "projects", "results"),
            _stage(coarse, 16, 0.05, "background", "overview", "comprehensive"),
        ],
    }


def _default_early_stop() -> dict[RetrievalStage, EarlyStopRule]:
    return {
        RetrievalStage.FINE: EarlyStopRule(min_relevance=0.85, min_results=3),
        RetrievalStage.MEDIUM: EarlyStopRule(min_relevance=0.75, min_results=5),
    }


class StagedRetrievalConfig(BaseModel):
    """Stage tables and early-stop rules used by RetrievalEngine.retrieve."""

    stages: dict[QueryIntent, list[RetrievalStageConfig]] = Field(default_factory=_default_stage_table)
    early_stop: dict[RetrievalStage, EarlyStopRule] = Field(default_factory=_default_early_stop)

    def stages_for(self, intent: QueryIntent) -> list[RetrievalStageConfig]:
        return self.stages.get(intent) or self.stages.get(QueryIntent.CASUAL, [])

    def should_stop(self, result: StageResult) -> bool:
        rule = self.early_stop.get(result.stage)
        return rule is not None and rule.satisfied_by(result)


# ============================================================================
# Scoring
# ============================================================================


def expand_query(query: str, terms: tuple[str, ...] | list[str]) -> str:
    """Append the terms the query does not already contain, in order."""
    lowered = query.lower()
    missing = [term for term in terms if term.lower() not in lowered]
    if not missing:
        return query
    return f"{query} {' '.join(missing)}"


def stage_relevance(results: list[SearchResult]) -> float:
    """
    Mean score penalized by spread: ``mean - (variance / mean) * 0.1``.

    Clamped to [0, 1]; 0.0 for no results.
    """
    if not results:
        return 0.0
    scores = [r.score for r in results]
    mean = sum(scores) / len(scores)
    if mean <= 0:
        return 0.0
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)
    return max(0.0, min(1.0, mean - (variance / mean) * VARIANCE_PENALTY))


def merge_stage_results(stages: list[StageResult]) -> list[SearchResult]:
    """
    Union of every stage's results, one per content id, by score descending.

    The highest score per content id wins. Equal scores keep stage order,
    so a FINE hit sorts ahead of an equally scored COARSE one.
    """
    combined = [result for stage in stages for result in stage.results]
    return sorted(deduplicate_by_content_id(combined), key=lambda r: r.score, reverse=True)


def best_stage(stages: list[StageResult]) -> StageResult | None:
    """Stage with results and the highest relevance; the earlier stage wins a tie."""
    best: StageResult | None = None
    for stage in stages:
        if not stage.results:
            continue
        if best is None or stage.relevance > best.relevance:
            best = stage
    return best


def cascade_confidence(stages: list[StageResult], stopped_early: bool) -> float:
    """
    ``0.6 * best relevance``, plus ``0.2 * mean relevance`` when more than
    one stage ran, plus 0.2 when the cascade stopped early. Clamped to [0, 1].
    """
    best = best_stage(stages)
    if best is None:
        return 0.0
    confidence = best.relevance * BEST_STAGE_WEIGHT
    if len(stages) > 1:
        confidence += STAGE_AVERAGE_WEIGHT * sum(s.relevance for s in stages) / len(stages)
    if stopped_early:
        confidence += EARLY_STOP_BONUS
    return max(0.0, min(1.0, confidence))

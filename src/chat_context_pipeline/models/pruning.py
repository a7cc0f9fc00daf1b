# chat_context_pipeline/models/pruning.py
"""Pruning result models."""

from pydantic import BaseModel, Field

from chat_context_pipeline.models.chunk import SearchResult


class PruneResult(BaseModel):
    """
    Evidence set fitted into a token budget.

    final_tokens <= original_tokens always, and final_tokens <= target
    whenever original_tokens exceeded the target. pruned_chunks is always a
    subset of the input. compression_rate is 1.0 only when non-empty input
    had no chunk small enough to keep.
    """

    pruned_chunks: list[SearchResult] = Field(default_factory=list)
    original_tokens: int = Field(default=0, ge=0)
    final_tokens: int = Field(default=0, ge=0)
    compression_rate: float = Field(
        default=0.0, ge=0.0, le=1.0, description="(original - final) / original; 1.0 when nothing fits"
    )
    coherence_score: float = Field(default=1.0, ge=0.0, le=1.0)
    quality_score: float = Field(default=1.0, ge=0.0, le=1.0)
    processing_time_ms: float = Field(default=0.0, ge=0.0)
    degraded: bool = Field(default=False, description="Scoring fell back to defaults")

    @property
    def tokens_saved(self) -> int:
        return self.original_tokens - self.final_tokens


class PruningBenchmark(BaseModel):
    """Averages over a batch of pruning runs."""

    cases: int = 0
    avg_compression_rate: float = 0.0
    avg_coherence_score: float = 0.0
    avg_quality_score: float = 0.0
    avg_processing_time_ms: float = 0.0

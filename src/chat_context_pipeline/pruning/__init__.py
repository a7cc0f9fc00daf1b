# chat_context_pipeline/pruning/__init__.py
"""Token-budget pruning of retrieved evidence."""

from chat_context_pipeline.pruning.pruner import ContextPruner, PrunerConfig
from chat_context_pipeline.pruning.scoring import (
    coherence_score,
    jaccard,
    quality_score,
    query_terms,
    term_coverage,
    weighted_mean_score,
)

__all__ = [
    "ContextPruner",
    "PrunerConfig",
    "coherence_score",
    "jaccard",
    "quality_score",
    "query_terms",
    "term_coverage",
    "weighted_mean_score",
]

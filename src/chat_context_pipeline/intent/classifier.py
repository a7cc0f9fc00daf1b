# chat_context_pipeline/intent/classifier.py
"""
Intent classification.

The classifier is an interface so a trained model can replace the rule
tables later; the rule-based implementation is locale-agnostic and reads
its patterns from a RuleRegistry.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from chat_context_pipeline.exceptions import AnalysisFailure
from chat_context_pipeline.intent.complexity import calculate_complexity
from chat_context_pipeline.intent.language import detect_language
from chat_context_pipeline.intent.rules import INTENT_PRIORITY, RuleRegistry, default_registry
from chat_context_pipeline.models.enums import QueryComplexity, QueryIntent
from chat_context_pipeline.models.query import IntentResult, Query

logger = logging.getLogger(__name__)

PRIMARY_LOCALE_CONFIDENCE = 0.9
FALLBACK_LOCALE_CONFIDENCE = 0.75
DEFAULT_CONFIDENCE = 0.5
DEGRADED_CONFIDENCE = 0.3


@runtime_checkable
class IntentClassifier(Protocol):
    """Anything that maps text to an intent label with a confidence."""

    def classify(self, text: str) -> IntentResult: ...


class RuleBasedIntentClassifier:
    """
    Ordered pattern tests over registered locales.

    Intents are tried in the fixed priority FACTUAL, SYNTHESIS, EXPLORATION,
    COMPARISON; for each one the detected language's rules go first, then
    the other locales. Nothing matching means CASUAL.
    """

    def __init__(self, registry: RuleRegistry | None = None):
        self.registry = registry or default_registry()

    def classify(self, text: str) -> IntentResult:
        if not text or not text.strip():
            return IntentResult(label=QueryIntent.CASUAL, confidence=DEFAULT_CONFIDENCE)

        normalized = text.strip().lower()
        rule_sets = self.registry.ordered_for(detect_language(text))

        for intent in INTENT_PRIORITY:
            for position, rule_set in enumerate(rule_sets):
                if rule_set.match(intent, normalized):
                    confidence = PRIMARY_LOCALE_CONFIDENCE if position == 0 else FALLBACK_LOCALE_CONFIDENCE
                    return IntentResult(label=intent, confidence=confidence)

        return IntentResult(label=QueryIntent.CASUAL, confidence=DEFAULT_CONFIDENCE)


_default_classifier = RuleBasedIntentClassifier()


def run_classifier(text: str, classifier: IntentClassifier) -> tuple[IntentResult, QueryComplexity]:
    """Intent and complexity of ``text``; any classifier error becomes AnalysisFailure."""
    try:
        result = classifier.classify(text)
        if not isinstance(result, IntentResult):
            raise TypeError(f"expected IntentResult, got {type(result).__name__}")
        return result, calculate_complexity(text)
    except Exception as e:
        raise AnalysisFailure(f"{type(classifier).__name__} failed: {e}") from e


def analyze_query(text: str, classifier: IntentClassifier | None = None) -> Query:
    """
    Language, intent and complexity of one user turn.

    A failing classifier does not fail the turn: the query degrades to
    CASUAL / MEDIUM with low confidence.
    """
    classifier = classifier or _default_classifier
    language = detect_language(text)

    try:
        result, complexity = run_classifier(text, classifier)
    except AnalysisFailure as e:
        logger.warning("Query analysis failed, using defaults: %s", e)
        return Query(
            text=text,
            language=language,
            intent=QueryIntent.CASUAL,
            complexity=QueryComplexity.MEDIUM,
            confidence=DEGRADED_CONFIDENCE,
        )

    logger.debug("Query classified as %s/%s (%.2f)", result.label.value, complexity.value, result.confidence)
    return Query(
        text=text,
        language=language,
        intent=result.label,
        complexity=complexity,
        confidence=result.confidence,
    )


def classify_intent(text: str) -> QueryIntent:
    """Intent label from the default rule-based classifier."""
    return _default_classifier.classify(text).label

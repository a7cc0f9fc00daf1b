# chat_context_pipeline/intent/__init__.py
"""Query analysis: language, intent and complexity."""

from chat_context_pipeline.intent.classifier import (
    IntentClassifier,
    RuleBasedIntentClassifier,
    analyze_query,
    classify_intent,
    run_classifier,
)
from chat_context_pipeline.intent.complexity import calculate_complexity
from chat_context_pipeline.intent.language import detect_language
from chat_context_pipeline.intent.rules import (
    ENGLISH_RULES,
    INTENT_PRIORITY,
    POLISH_RULES,
    IntentRule,
    LocaleRuleSet,
    RuleRegistry,
    default_registry,
)

__all__ = [
    "IntentClassifier",
    "RuleBasedIntentClassifier",
    "analyze_query",
    "classify_intent",
    "run_classifier",
    "calculate_complexity",
    "detect_language",
    "ENGLISH_RULES",
    "INTENT_PRIORITY",
    "POLISH_RULES",
    "IntentRule",
    "LocaleRuleSet",
    "RuleRegistry",
    "default_registry",
]

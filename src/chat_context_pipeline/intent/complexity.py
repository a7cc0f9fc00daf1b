# chat_context_pipeline/intent/complexity.py
"""Coarse complexity tier of a query, used to scale the context budget."""

from __future__ import annotations

import re
from collections.abc import Iterable

from chat_context_pipeline.intent.rules import LocaleRuleSet, RuleRegistry, default_registry
from chat_context_pipeline.models.enums import QueryComplexity

LONG_QUERY_CHARS = 100
HIGH_COMPLEXITY_SCORE = 3
MEDIUM_COMPLEXITY_SCORE = 1

_default_registry = default_registry()


def _word_pattern(words: Iterable[str]) -> re.Pattern[str] | None:
    alternatives = sorted({re.escape(w) for w in words if w}, key=len, reverse=True)
    if not alternatives:
        return None
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


def _has_match(pattern: re.Pattern[str] | None, text: str) -> bool:
    return pattern is not None and pattern.search(text) is not None


def _count_matches(pattern: re.Pattern[str] | None, text: str) -> int:
    return len(pattern.findall(text)) if pattern is not None else 0


def calculate_complexity(
    text: str,
    query_length: int = 0,
    rule_set: LocaleRuleSet | None = None,
    registry: RuleRegistry | None = None,
) -> QueryComplexity:
    """
    Score six boolean indicators and map the count to a tier.

    Indicators: more than one question mark, a conjunction, a precision
    word, a comparison word, length over 100 characters, and two or more
    topic-keyword hits. Three or more is HIGH, one or more MEDIUM, none LOW.

    With no ``rule_set`` the vocabulary is the union of every locale in the
    registry, since mixed-language queries are common.
    """
    if rule_set is not None:
        rule_sets = [rule_set]
    else:
        rule_sets = (registry or _default_registry).all()

    conjunctions = _word_pattern(w for rs in rule_sets for w in rs.conjunctions)
    precision = _word_pattern(w for rs in rule_sets for w in rs.precision_words)
    comparison = _word_pattern(w for rs in rule_sets for w in rs.comparison_words)
    topics = _word_pattern(w for rs in rule_sets for w in rs.topic_keywords)

    effective_length = query_length or len(text)

    indicators = [
        text.count("?") > 1,
        _has_match(conjunctions, text),
        _has_match(precision, text),
        _has_match(comparison, text),
        effective_length > LONG_QUERY_CHARS,
        _count_matches(topics, text) >= 2,
    ]
    score = sum(indicators)

    if score >= HIGH_COMPLEXITY_SCORE:
        return QueryComplexity.HIGH
    if score >= MEDIUM_COMPLEXITY_SCORE:
        return QueryComplexity.MEDIUM
    return QueryComplexity.LOW

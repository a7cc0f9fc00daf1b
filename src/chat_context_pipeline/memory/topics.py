# chat_context_pipeline/memory/topics.py
"""Regex topic tagging for conversation messages (Polish and English stems)."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, PrivateAttr


class TopicRule(BaseModel):
    """A topic label and the pattern that assigns it."""

    topic: str = Field(..., description="Label stored on matching messages")
    pattern: str = Field(..., description="Case-insensitive regex")

    _compiled: re.Pattern[str] = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._compiled = re.compile(self.pattern, re.IGNORECASE)

    def matches(self, text: str) -> bool:
        return self._compiled.search(text) is not None


DEFAULT_TOPIC_RULES: tuple[TopicRule, ...] = (
    TopicRule(topic="technology", pattern=r"\b(?:react|typescript|javascript|ai\b|ml\b|technolog)"),
    TopicRule(topic="design", pattern=r"\b(?:design|ui\b|ux\b|interface|interfejs|projektowa)"),
    TopicRule(topic="leadership", pattern=r"\b(?:leadership|lead\b|team|management|zespo[łl]|zarz[ąa]dza|lider)"),
    TopicRule(topic="projects", pattern=r"\b(?:project|product|application|projekt(?!owa)|produkt|aplikac)"),
    TopicRule(topic="achievements", pattern=r"\b(?:achievement|success|result|osi[ąa]gni[ęe]|sukces|wynik)"),
    TopicRule(topic="volkswagen", pattern=r"\b(?:volkswagen|vw\b)"),
    TopicRule(topic="media", pattern=r"\b(?:polsat|tvp)"),
    TopicRule(topic="finance", pattern=r"\b(?:bank|fintech|financ|finans)"),
    TopicRule(topic="experience", pattern=r"\b(?:experience|do[śs]wiadcz)"),
)


def extract_topics(text: str, rules: tuple[TopicRule, ...] | list[TopicRule] = DEFAULT_TOPIC_RULES) -> set[str]:
    """Return every topic whose rule matches ``text``."""
    if not text:
        return set()
    return {rule.topic for rule in rules if rule.matches(text)}

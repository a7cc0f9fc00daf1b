# tests/test_topics.py
"""Tests for regex topic extraction."""

import pytest

from chat_context_pipeline.memory import DEFAULT_TOPIC_RULES, TopicRule, extract_topics


class TestExtractTopics:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Jak wyglądał projekt w Volkswagen?", {"projects", "volkswagen"}),
            ("React and TypeScript design system", {"technology", "design"}),
            ("Tell me about your team leadership", {"leadership"}),
            ("porównaj swoje doświadczenie w VW vs Polsat", {"experience", "volkswagen", "media"}),
            ("projektowanie interfejsów", {"design"}),
            ("a fintech app for a bank", {"finance"}),
            ("największy sukces w TVP", {"achievements", "media"}),
        ],
    )
    def test_topics(self, text, expected):
        assert extract_topics(text) == expected

    @pytest.mark.parametrize("text", ["", "Hello there", "my email address", "html page"])
    def test_no_topics(self, text):
        assert extract_topics(text) == set()

    def test_case_insensitive(self):
        assert extract_topics("VOLKSWAGEN") == extract_topics("volkswagen") == {"volkswagen"}

    def test_custom_rules(self):
        rules = [TopicRule(topic="cars", pattern=r"\b(?:audi|skoda)")]
        assert extract_topics("Skoda and Audi", rules) == {"cars"}
        assert extract_topics("Volkswagen", rules) == set()

    def test_default_table_covers_every_topic(self):
        assert {r.topic for r in DEFAULT_TOPIC_RULES} == {
            "technology",
            "design",
            "leadership",
            "projects",
            "achievements",
            "volkswagen",
            "media",
            "finance",
            "experience",
        }

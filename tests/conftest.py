# tests/conftest.py
"""
Shared pytest fixtures and configuration for chat_context_pipeline tests.

The doubles themselves live in tests/fakes.py so test modules can build
their own instances too.
"""

import logging

import pytest

from tests.fakes import (
    PORTFOLIO_VOCABULARY,
    FailingEmbedder,
    FakeClock,
    HangingEmbedder,
    ScriptedIndex,
    StaticEmbedder,
    VocabularyEmbedder,
    portfolio_chunks,
)

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("chat_context_pipeline").setLevel(logging.DEBUG)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def failing_embedder():
    return FailingEmbedder()


@pytest.fixture
def hanging_embedder():
    return HangingEmbedder()


@pytest.fixture
def static_embedder():
    return StaticEmbedder()


@pytest.fixture
def scripted_index():
    """Factory: scripted_index([SearchResult, ...])."""
    return ScriptedIndex


@pytest.fixture
def portfolio_embedder():
    return VocabularyEmbedder(PORTFOLIO_VOCABULARY)


@pytest.fixture
def portfolio_corpus(portfolio_embedder):
    return portfolio_chunks(portfolio_embedder)


# Test markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")

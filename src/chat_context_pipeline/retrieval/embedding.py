# chat_context_pipeline/retrieval/embedding.py
"""
Embedding providers.

OpenAIEmbeddingProvider is the production path. HashingEmbeddingProvider
is deterministic and offline, for development corpora and tests.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from typing import Protocol, runtime_checkable

from openai import AsyncOpenAI

from chat_context_pipeline.config import EMBEDDING_DIMENSIONS, EMBEDDING_MODEL, RETRIEVAL_TIMEOUT_SECONDS
from chat_context_pipeline.exceptions import RetrievalFailure

logger = logging.getLogger(__name__)

_WORD = re.compile(r"\w+", re.UNICODE)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into a vector of fixed dimension."""

    async def embed(self, text: str) -> list[float]: ...


class OpenAIEmbeddingProvider:
    """Embeddings from the OpenAI API."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str = EMBEDDING_MODEL,
        dimensions: int | None = EMBEDDING_DIMENSIONS,
        timeout: float = RETRIEVAL_TIMEOUT_SECONDS,
    ):
        self.client = client or AsyncOpenAI(timeout=timeout)
        self.model = model
        self.dimensions = dimensions

    async def embed(self, text: str) -> list[float]:
        kwargs = {"model": self.model, "input": text}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions

        try:
            response = await self.client.embeddings.create(**kwargs)
        except Exception as e:
            raise RetrievalFailure(f"Embedding request failed: {e}") from e

        if not response.data or not response.data[0].embedding:
            raise RetrievalFailure("Embedding response contained no vector")

        vector = list(response.data[0].embedding)
        if self.dimensions and len(vector) != self.dimensions:
            raise RetrievalFailure(f"Expected {self.dimensions} dimensions, got {len(vector)}")
        return vector


class HashingEmbeddingProvider:
    """
    Signed feature hashing over lowercase words.

    Each word lands in one bucket with a +1/-1 sign derived from its MD5
    digest; the result is L2-normalized. Texts sharing no words are close
    to orthogonal, texts sharing words score proportionally higher.
    """

    def __init__(self, dimensions: int = 256):
        self.dimensions = dimensions

    def _bucket(self, word: str) -> tuple[int, float]:
        digest = hashlib.md5(word.encode("utf-8")).digest()
        index = int.from_bytes(digest[:4], "little") % self.dimensions
        sign = 1.0 if digest[4] & 1 else -1.0
        return index, sign

    def embed_sync(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for word in _WORD.findall(text.lower()):
            index, sign = self._bucket(word)
            vector[index] += sign
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            return vector
        return [v / norm for v in vector]

    async def embed(self, text: str) -> list[float]:
        return self.embed_sync(text)

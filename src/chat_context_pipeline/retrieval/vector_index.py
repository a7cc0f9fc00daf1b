# chat_context_pipeline/retrieval/vector_index.py
"""
Vector index interface and an in-memory implementation.

The corpus is read-only to the pipeline; a deployment backs VectorIndex
with its hosted vector database and the ingestion job fills it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

import numpy as np

from chat_context_pipeline.models.chunk import Chunk, SearchResult, clamp_score
from chat_context_pipeline.retrieval.embedding import EmbeddingProvider
from chat_context_pipeline.retrieval.similarity import normalize_rows

logger = logging.getLogger(__name__)


@runtime_checkable
class VectorIndex(Protocol):
    """Nearest-neighbour search over embedded chunks."""

    async def query(self, vector: list[float], top_k: int, min_score: float) -> list[SearchResult]: ...


class InMemoryVectorIndex:
    """Brute-force cosine search over a numpy matrix."""

    def __init__(self, chunks: Iterable[Chunk] | None = None):
        self._chunks: list[Chunk] = []
        self._matrix: np.ndarray | None = None
        if chunks:
            self.add(chunks)

    @classmethod
    async def from_texts(cls, chunks: Iterable[Chunk], embedder: EmbeddingProvider) -> InMemoryVectorIndex:
        """Build an index, embedding chunks that arrive without a vector."""
        embedded = []
        for chunk in chunks:
            if not chunk.embedding:
                chunk = chunk.model_copy(update={"embedding": await embedder.embed(chunk.text)})
            embedded.append(chunk)
        return cls(embedded)

    @property
    def dimensions(self) -> int | None:
        return None if self._matrix is None else self._matrix.shape[1]

    def add(self, chunks: Iterable[Chunk]) -> None:
        new = list(chunks)
        if not new:
            return

        rows = []
        for chunk in new:
            if not chunk.embedding:
                raise ValueError(f"Chunk {chunk.id} has no embedding")
            rows.append(chunk.embedding)

        matrix = np.asarray(rows, dtype=float)
        if matrix.ndim != 2:
            raise ValueError("Chunk embeddings must all have the same length")
        if self._matrix is not None and matrix.shape[1] != self._matrix.shape[1]:
            raise ValueError(f"Expected {self._matrix.shape[1]} dimensions, got {matrix.shape[1]}")

        matrix = normalize_rows(matrix)
        self._matrix = matrix if self._matrix is None else np.vstack([self._matrix, matrix])
        self._chunks.extend(new)
        logger.debug("Indexed %d chunks (%d total)", len(new), len(self._chunks))

    def remove(self, chunk_id: str) -> bool:
        for position, chunk in enumerate(self._chunks):
            if chunk.id == chunk_id:
                del self._chunks[position]
                self._matrix = np.delete(self._matrix, position, axis=0) if self._chunks else None
                return True
        return False

    async def query(self, vector: list[float], top_k: int, min_score: float) -> list[SearchResult]:
        if self._matrix is None or top_k <= 0:
            return []

        query_vec = np.asarray(vector, dtype=float)
        if query_vec.shape != (self._matrix.shape[1],):
            raise ValueError(f"Query vector has {query_vec.size} dimensions, index has {self._matrix.shape[1]}")

        norm = np.linalg.norm(query_vec)
        if norm == 0.0:
            return []

        scores = self._matrix @ (query_vec / norm)
        # stable sort keeps insertion order among equal scores
        order = np.argsort(-scores, kind="stable")

        results = []
        for position in order:
            score = clamp_score(float(scores[position]))
            if score < min_score:
                break
            results.append(SearchResult(chunk=self._chunks[position], score=score))
            if len(results) >= top_k:
                break
        return results

    def __len__(self) -> int:
        return len(self._chunks)

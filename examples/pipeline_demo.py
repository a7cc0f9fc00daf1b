#!/usr/bin/env python3
# examples/pipeline_demo.py
"""
Offline pipeline demo.

Builds a small portfolio corpus with the hashing embedder, then runs a few
Polish and English turns through the pipeline and prints the metadata of
each response. No API keys needed.

Run with: python examples/pipeline_demo.py
"""

import asyncio
import logging

from chat_context_pipeline import (
    ChatContextPipeline,
    Chunk,
    ChunkMetadata,
    ConversationMemory,
    HashingEmbeddingProvider,
    InMemoryVectorIndex,
    RetrievalEngine,
)

logging.basicConfig(level=logging.WARNING)

CORPUS = [
    Chunk(
        id="vw-1",
        text="At VW Digital I led the design system for Volkswagen dealer tools, used by 40 product teams.",
        metadata=ChunkMetadata(content_type="work", content_id="vw-digital", tags=["automotive"], featured=True),
    ),
    Chunk(
        id="vw-2",
        text="Zespół VW Digital urósł z 3 do 12 osób w ciągu dwóch lat.",
        metadata=ChunkMetadata(content_type="leadership", content_id="vw-team", tags=["team"]),
    ),
    Chunk(
        id="polsat-1",
        text="Polsat Box Go: redesign of the streaming app, doświadczenie w mediach i React.",
        metadata=ChunkMetadata(content_type="work", content_id="polsat-box-go", technologies=["react"]),
    ),
    Chunk(
        id="bank-1",
        text="Experiment: a fintech banking prototype with AI-assisted onboarding.",
        metadata=ChunkMetadata(content_type="experiment", content_id="bank-app", technologies=["react", "ai"]),
    ),
]

TURNS = [
    "cześć!",
    "porównaj swoje doświadczenie w VW vs Polsat",
    "how big was the VW team?",
    "what can you tell me about your banking experiment?",
]


async def main():
    print("🧭 Chat context pipeline demo")
    print("=" * 40)

    embedder = HashingEmbeddingProvider()
    index = await InMemoryVectorIndex.from_texts(CORPUS, embedder)
    memory = ConversationMemory()
    # hashing vectors score lower than real embeddings
    pipeline = ChatContextPipeline(RetrievalEngine(embedder, index), memory, min_score=0.2)

    for turn in TURNS:
        response = await pipeline.process({"messages": [{"role": "user", "content": turn}], "sessionId": "demo"})
        meta = response.metadata
        print(f"\n👤 {turn}")
        print(f"🤖 {response.content[:120]}")
        print(
            f"   intent={meta['queryIntent'].value} language={meta.language.value} "
            f"context={meta.context_length} chars confidence={meta.confidence:.2f} "
            f"history={meta.conversation_length} cached={meta.cache_hit}"
        )
        print(f"   stages: {' -> '.join(stage.value for stage in meta.pipeline_stages)}")

    summary = await memory.get_session_summary("demo")
    print(f"\n📊 Session: {summary.message_count} messages, topics {summary.dominant_topics}")
    print(f"📦 Cache: {pipeline.cache.get_stats().model_dump()}")


if __name__ == "__main__":
    asyncio.run(main())

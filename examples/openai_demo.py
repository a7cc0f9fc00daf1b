# examples/openai_demo.py
"""
Pipeline with OpenAI embeddings and an OpenAI chat completion.

Setup:
    1. Create .env file in project root with:
       OPENAI_API_KEY=your-api-key-here

    2. Or export environment variable:
       export OPENAI_API_KEY="your-api-key-here"

Run:
    python examples/openai_demo.py
"""

import asyncio
import os

from dotenv import load_dotenv
from openai import AsyncOpenAI

from chat_context_pipeline import (
    ChatContextPipeline,
    Chunk,
    ChunkMetadata,
    ConversationMemory,
    InMemoryVectorIndex,
    OpenAIEmbeddingProvider,
    RetrievalEngine,
)
from chat_context_pipeline.models import AssembledPrompt, CompletionResult

load_dotenv()

CORPUS = [
    Chunk(
        id="vw-1",
        text="At VW Digital I led the design system for Volkswagen dealer tools, used by 40 product teams.",
        metadata=ChunkMetadata(content_type="work", content_id="vw-digital"),
    ),
    Chunk(
        id="polsat-1",
        text="Polsat Box Go: redesign of the streaming app for 2 million viewers.",
        metadata=ChunkMetadata(content_type="work", content_id="polsat-box-go"),
    ),
]


def make_completion(client: AsyncOpenAI, model: str = "gpt-4o-mini"):
    """Wrap the chat completions API as a pipeline completion function."""

    async def complete(prompt: AssembledPrompt) -> CompletionResult:
        messages = [{"role": "system", "content": prompt.system_prompt}]
        messages += [{"role": m.role.value, "content": m.content} for m in prompt.history]
        messages.append({"role": "user", "content": prompt.user_message})

        response = await client.chat.completions.create(model=model, messages=messages, max_tokens=400)
        usage = response.usage.completion_tokens if response.usage else 0
        return CompletionResult(content=response.choices[0].message.content or "", tokens_used=usage)

    return complete


async def main():
    if not os.getenv("OPENAI_API_KEY"):
        print("❌ OPENAI_API_KEY not found!")
        return

    client = AsyncOpenAI()
    embedder = OpenAIEmbeddingProvider(client=client)
    index = await InMemoryVectorIndex.from_texts(CORPUS, embedder)
    pipeline = ChatContextPipeline(
        RetrievalEngine(embedder, index),
        ConversationMemory(),
        complete_fn=make_completion(client),
    )

    response = await pipeline.process(
        {"messages": [{"role": "user", "content": "porównaj VW i Polsat"}], "sessionId": "openai-demo"}
    )
    print(response.content)
    print(response.to_payload()["metadata"])


if __name__ == "__main__":
    asyncio.run(main())

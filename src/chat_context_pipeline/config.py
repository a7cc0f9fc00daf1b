# chat_context_pipeline/config.py
"""Process-wide defaults, overridable through environment variables or a .env file."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Conversation memory
MAX_SESSION_MESSAGES = int(os.getenv("CONVERSATION_MEMORY_MAX_MESSAGES", "20"))
SESSION_TTL_SECONDS = float(os.getenv("CONVERSATION_MEMORY_TTL", "3600"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("CONVERSATION_MEMORY_SWEEP_INTERVAL", "600"))

# Retrieval
RETRIEVAL_TIMEOUT_SECONDS = float(os.getenv("RETRIEVAL_TIMEOUT", "5.0"))
DEFAULT_MIN_SCORE = float(os.getenv("RETRIEVAL_MIN_SCORE", "0.5"))
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
EMBEDDING_DIMENSIONS = int(os.getenv("EMBEDDING_DIMENSIONS", "1024"))

# Evidence cache
CONTEXT_CACHE_TTL_SECONDS = float(os.getenv("CONTEXT_CACHE_TTL", "1800"))
CONTEXT_CACHE_MAX_ENTRIES = int(os.getenv("CONTEXT_CACHE_MAX_ENTRIES", "1000"))

# ~4 characters per token, same heuristic everywhere tokens are estimated
CHARS_PER_TOKEN = 4

# chat_context_pipeline/retrieval/formatting.py
"""Render search results as a prompt block."""

from __future__ import annotations

from chat_context_pipeline.models.chunk import SearchResult, estimate_tokens

DEFAULT_WINDOW_TOKENS = 2000


def group_by_content_type(results: list[SearchResult]) -> dict[str, list[SearchResult]]:
    """Group preserving first-seen type order and in-group order."""
    grouped: dict[str, list[SearchResult]] = {}
    for result in results:
        grouped.setdefault(result.chunk.metadata.content_type or "general", []).append(result)
    return grouped


def format_result_line(result: SearchResult) -> str:
    return f"- {result.chunk.text} (relevance: {result.score * 100:.1f}%)\n"


def build_context_window(results: list[SearchResult], max_tokens: int | None = DEFAULT_WINDOW_TOKENS) -> str:
    """
    ``### TYPE`` sections of evidence lines, stopping at the token budget.

    Headers and lines are costed with the same ~4 chars per token estimate
    used everywhere else. A line that does not fit ends its section.
    ``max_tokens=None`` renders every result.
    """
    if not results:
        return ""

    sections: list[str] = []
    used = 0
    for content_type, group in group_by_content_type(results).items():
        header = f"\n### {content_type.upper()}\n"
        header_tokens = estimate_tokens(header)
        if max_tokens is not None and used + header_tokens > max_tokens:
            break
        sections.append(header)
        used += header_tokens

        for result in group:
            line = format_result_line(result)
            line_tokens = estimate_tokens(line)
            if max_tokens is not None and used + line_tokens > max_tokens:
                break
            sections.append(line)
            used += line_tokens

    return "".join(sections)

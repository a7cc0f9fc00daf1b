# chat_context_pipeline/intent/language.py
"""Language detection for user turns."""

from __future__ import annotations

import re

from chat_context_pipeline.models.enums import Language

_POLISH_DIACRITICS = re.compile(r"[ąćęłńóśźżĄĆĘŁŃÓŚŹŻ]")
_POLISH_WORDS = re.compile(r"\b(cześć|czesc|dzień|dzien|jak|czy|co)\b", re.IGNORECASE)


def detect_language(text: str) -> Language:
    """Polish when the text carries Polish diacritics or common Polish words, else English."""
    if not text:
        return Language.ENGLISH
    if _POLISH_DIACRITICS.search(text) or _POLISH_WORDS.search(text):
        return Language.POLISH
    return Language.ENGLISH

"""NLP utilities shared across the triage backend."""

from __future__ import annotations

from .fallback import fallback_extract
from .text import normalize_str, strip_diacritics, tokenize, unique

__all__ = ["fallback_extract", "normalize_str", "strip_diacritics", "tokenize", "unique"]

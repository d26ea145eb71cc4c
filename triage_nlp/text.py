"""Text normalization shared by the registry alias index and the extractors.

Every alias key and every token the fallback extractor compares against goes
through :func:`normalize_str`, so two strings that differ only in accents,
case or punctuation spacing land on the same key.
"""

from __future__ import annotations

import unicodedata
from typing import Hashable, Iterable, TypeVar

T = TypeVar("T", bound=Hashable)


def strip_diacritics(value: str | None) -> str:
    """Decompose, drop combining marks and lower-case."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _is_word_char(ch: str) -> bool:
    category = unicodedata.category(ch)
    return category[0] in ("L", "N") or ch.isspace()


def normalize_str(value: str | None) -> str:
    """Return the canonical lookup key for ``value``.

    Output holds only letters and digits separated by single spaces.
    """
    stripped = strip_diacritics(value)
    cleaned = "".join(ch if _is_word_char(ch) else " " for ch in stripped)
    return " ".join(cleaned.split())


def tokenize(value: str | None) -> set[str]:
    return set(normalize_str(value).split())


def unique(items: Iterable[T]) -> list[T]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(items))


__all__ = ["normalize_str", "strip_diacritics", "tokenize", "unique"]

"""Deterministic local extractor used alongside the language model.

Features are matched against the registry alias index in three passes whose
results are unioned in order:

1. substring: the normalized alias occurs in the normalized text;
2. bag-of-words: every content word of the alias is a token of the text;
3. id tokens: every ``_``/``.`` separated piece of the feature id is a token
   of the text, with or without a registered alias.

Only ids in the allowed set are ever emitted.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Collection, Iterable, Mapping

from triage_schemas.extraction import Demographics, ExtractionResult

from .text import normalize_str, strip_diacritics, unique

if TYPE_CHECKING:  # pragma: no cover
    from app.registry.models import Registry

STOP_WORDS = frozenset(
    {
        "de", "da", "do", "das", "dos", "e", "a", "o", "as", "os",
        "para", "no", "na", "nos", "nas", "com", "em", "por", "um", "uma",
    }
)
MIN_WORD_LEN = 2

_MALE_RE = re.compile(r"\b(sexo[:\s]*)?(masculino|homem|m)\b")
_FEMALE_RE = re.compile(r"\b(sexo[:\s]*)?(feminino|mulher|f)\b")
_AGE_RE = re.compile(r"(\d{1,3})\s*(anos?|a)\b", re.IGNORECASE)
_TEMPERATURE_RE = re.compile(r"(\d{2}(?:\.\d)?)\s*(?:°\s*C|graus?\s*C|c\s*º)", re.IGNORECASE)
_ID_SPLIT_RE = re.compile(r"[_.]")

MAX_AGE = 120


def detect_sex(normalized_text: str) -> str | None:
    """Male markers first, then female; a female match overwrites a male one."""
    sex = None
    if _MALE_RE.search(normalized_text):
        sex = "M"
    if _FEMALE_RE.search(normalized_text):
        sex = "F"
    return sex


def detect_age(raw_text: str) -> int | None:
    match = _AGE_RE.search(raw_text)
    if not match:
        return None
    age = int(match.group(1))
    return age if 0 <= age <= MAX_AGE else None


def detect_temperature(raw_text: str) -> float | None:
    match = _TEMPERATURE_RE.search(raw_text)
    return float(match.group(1)) if match else None


def content_words(alias_key: str) -> list[str]:
    return [w for w in alias_key.split() if w not in STOP_WORDS and len(w) >= MIN_WORD_LEN]


def id_tokens(fid: str) -> list[str]:
    return [strip_diacritics(part) for part in _ID_SPLIT_RE.split(fid)]


def match_substring(
    normalized_text: str,
    alias_index: Mapping[str, str],
    allowed: Collection[str],
) -> list[str]:
    hits: list[str] = []
    for alias_key, fid in alias_index.items():
        if fid in allowed and alias_key in normalized_text:
            hits.append(fid)
    return unique(hits)


def match_bag_of_words(
    tokens: Collection[str],
    alias_index: Mapping[str, str],
    allowed: Collection[str],
    already: Collection[str] = (),
) -> list[str]:
    hits: list[str] = []
    for alias_key, fid in alias_index.items():
        if fid not in allowed or fid in already:
            continue
        words = content_words(alias_key)
        if words and all(word in tokens for word in words):
            hits.append(fid)
    return unique(hits)


def match_id_tokens(tokens: Collection[str], allowed: Iterable[str]) -> list[str]:
    return [fid for fid in allowed if all(token in tokens for token in id_tokens(fid))]


def extract_features(
    normalized_text: str,
    tokens: Collection[str],
    alias_index: Mapping[str, str],
    allowed: Iterable[str],
) -> list[str]:
    """Ordered union of the three passes."""
    allowed_order = unique(allowed)
    allowed_set = frozenset(allowed_order)
    by_substring = match_substring(normalized_text, alias_index, allowed_set)
    by_words = match_bag_of_words(tokens, alias_index, allowed_set, frozenset(by_substring))
    by_id = match_id_tokens(tokens, allowed_order)
    return unique([*by_substring, *by_words, *by_id])


def fallback_extract(text: str | None, registry: "Registry", allowed: Iterable[str]) -> ExtractionResult:
    raw = str(text or "")
    normalized = normalize_str(raw)
    tokens = frozenset(normalized.split())

    modifiers: dict[str, Any] = {}
    temperature = detect_temperature(raw)
    if temperature is not None:
        modifiers["temperatura_c"] = temperature

    demographics = Demographics(idade=detect_age(raw), sexo=detect_sex(normalized))

    features = extract_features(normalized, tokens, registry.alias_to_id, allowed)
    return ExtractionResult(features=features, modifiers=modifiers, demographics=demographics)


__all__ = [
    "STOP_WORDS",
    "content_words",
    "detect_age",
    "detect_sex",
    "detect_temperature",
    "extract_features",
    "fallback_extract",
    "id_tokens",
    "match_bag_of_words",
    "match_id_tokens",
    "match_substring",
]

"""Alias derivation and the reverse alias index.

For each feature the index receives, in this order:

1. declared aliases, verbatim;
2. the label, verbatim;
3. the label explosion: every parenthesised group, the label with the groups
   removed, and the label split on ``/ - – — : ; , | •``;
4. the raw id, the id with ``_`` as spaces and the id with ``.`` as spaces.

Every candidate is passed through :func:`normalize_str`; empty keys are
dropped. Two features may share a key: the later one wins.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from triage_nlp.text import normalize_str, unique

from .models import FeatureMeta

_PAREN_RE = re.compile(r"\(([^()]*)\)")
_LABEL_SPLIT_RE = re.compile(r"[/\-–—:;,|•]")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")


def explode_label(label: str | None) -> list[str]:
    if not label:
        return []
    parts: list[str] = []
    for inner in _PAREN_RE.findall(label):
        if inner.strip():
            parts.append(inner.strip())
    without_groups = _MULTI_SPACE_RE.sub(" ", _PAREN_RE.sub("", label)).strip()
    if without_groups:
        parts.append(without_groups)
    for segment in _LABEL_SPLIT_RE.split(label):
        if segment.strip():
            parts.append(segment.strip())
    return parts


def id_variants(fid: str) -> list[str]:
    return [fid, fid.replace("_", " "), fid.replace(".", " ")]


def collect_aliases(fid: str, meta: FeatureMeta) -> list[str]:
    """Raw (un-normalized) alias candidates for one feature, in index order."""
    candidates: list[str] = list(meta.aliases)
    if meta.label:
        candidates.append(meta.label)
        candidates.extend(explode_label(meta.label))
    candidates.extend(id_variants(fid))
    return candidates


def normalized_aliases(candidates: Iterable[str]) -> list[str]:
    keys = (normalize_str(candidate) for candidate in candidates)
    return unique(key for key in keys if key)


def build_alias_index(features: Mapping[str, FeatureMeta]) -> dict[str, str]:
    """Map every normalized alias to its feature id (last writer wins)."""
    index: dict[str, str] = {}
    for fid, meta in features.items():
        for key in normalized_aliases(collect_aliases(fid, meta)):
            index[key] = fid
    return index


__all__ = [
    "build_alias_index",
    "collect_aliases",
    "explode_label",
    "id_variants",
    "normalized_aliases",
]

"""Coercion of raw registry documents into canonical feature maps.

Registry documents arrive in several shapes depending on which generator
produced them. Each recognised shape has a tag (:class:`FeatureShape`) and one
coercion rule; :func:`coerce_features` classifies the input and dispatches.

Recognised feature shapes::

    {"features": [{"id": ..., "label": ..., "aliases": ...}, ...]}   WRAPPED_LIST
    [{"id": ..., "label": ..., "aliases": ...}, ...]                 RECORD_LIST
    {"rinite_alergica": {"label": ..., "aliases": [...]}, ...}       FEATURE_MAP

Anything else is UNRECOGNIZED and coerces to an empty map.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Mapping

from triage_nlp.text import unique

from .models import FeatureMeta

FEATURE_ID_RE = re.compile(r"^[a-z0-9_.]+$")
_ALIAS_SPLIT_RE = re.compile(r"[;,|]")

# Lookup paths on the snapshot document, in priority order.
_FEATURE_KEYS = ("featuresMap", "features", "byFeatureId")
_NESTED_KEYS = ("registry", "global")
FEATURE_PATHS: tuple[tuple[str, ...], ...] = tuple(
    [(key,) for key in _FEATURE_KEYS]
    + [(parent, key) for parent in _NESTED_KEYS for key in _FEATURE_KEYS]
)

_REDFLAG_KEYS = ("redflags", "redFlags", "redflagsMap")
REDFLAG_PATHS: tuple[tuple[str, ...], ...] = tuple(
    [(key,) for key in _REDFLAG_KEYS]
    + [(parent, key) for parent in _NESTED_KEYS for key in _REDFLAG_KEYS]
)

_GLOBAL_ID_KEYS = ("globalIds", "global_ids", "globalIdMap")
GLOBAL_ID_PATHS: tuple[tuple[str, ...], ...] = tuple(
    [(key,) for key in _GLOBAL_ID_KEYS] + [("registry", key) for key in _GLOBAL_ID_KEYS]
)


class FeatureShape(str, Enum):
    WRAPPED_LIST = "wrapped_list"
    RECORD_LIST = "record_list"
    FEATURE_MAP = "feature_map"
    UNRECOGNIZED = "unrecognized"


def is_feature_id(value: Any) -> bool:
    return isinstance(value, str) and bool(FEATURE_ID_RE.match(value))


def split_aliases(raw: Any) -> tuple[str, ...]:
    """Accept declared aliases as a list or as a ``;``/``,``/``|`` separated string."""
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ()
        if not _ALIAS_SPLIT_RE.search(text):
            return (text,)
        parts = (part.strip() for part in _ALIAS_SPLIT_RE.split(text))
        return tuple(unique(part for part in parts if part))
    if isinstance(raw, (list, tuple)):
        return tuple(unique(item for item in raw if isinstance(item, str)))
    return ()


def _meta_from_mapping(data: Mapping[str, Any]) -> FeatureMeta:
    label = data.get("label")
    extra = {k: v for k, v in data.items() if k not in ("id", "label", "aliases")}
    return FeatureMeta(
        label=label if isinstance(label, str) else None,
        aliases=split_aliases(data.get("aliases")),
        extra=extra,
    )


def classify_features(raw: Any) -> FeatureShape:
    if isinstance(raw, list):
        return FeatureShape.RECORD_LIST
    if isinstance(raw, Mapping):
        if isinstance(raw.get("features"), list):
            return FeatureShape.WRAPPED_LIST
        if raw and all(is_feature_id(key) for key in raw):
            return FeatureShape.FEATURE_MAP
    return FeatureShape.UNRECOGNIZED


def _coerce_wrapped_list(raw: Mapping[str, Any]) -> dict[str, FeatureMeta]:
    return _coerce_record_list(raw["features"])


def _coerce_record_list(raw: list[Any]) -> dict[str, FeatureMeta]:
    features: dict[str, FeatureMeta] = {}
    for record in raw:
        if not isinstance(record, Mapping):
            continue
        fid = record.get("id")
        if not isinstance(fid, str) or not fid.strip():
            continue
        features[fid.strip()] = _meta_from_mapping(record)
    return features


def _coerce_feature_map(raw: Mapping[str, Any]) -> dict[str, FeatureMeta]:
    return {
        fid: _meta_from_mapping(meta) if isinstance(meta, Mapping) else FeatureMeta()
        for fid, meta in raw.items()
    }


def _coerce_unrecognized(_raw: Any) -> dict[str, FeatureMeta]:
    return {}


_COERCERS: dict[FeatureShape, Callable[[Any], dict[str, FeatureMeta]]] = {
    FeatureShape.WRAPPED_LIST: _coerce_wrapped_list,
    FeatureShape.RECORD_LIST: _coerce_record_list,
    FeatureShape.FEATURE_MAP: _coerce_feature_map,
    FeatureShape.UNRECOGNIZED: _coerce_unrecognized,
}


def coerce_features(raw: Any) -> dict[str, FeatureMeta]:
    """Coerce any recognised feature shape into ``{feature_id: FeatureMeta}``."""
    return _COERCERS[classify_features(raw)](raw)


def _lookup(document: Any, path: tuple[str, ...]) -> Any:
    node = document
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def find_features(snapshot: Any) -> tuple[dict[str, FeatureMeta], str | None]:
    """Try the known nesting paths; return the first non-empty map and its path."""
    for path in FEATURE_PATHS:
        value = _lookup(snapshot, path)
        if value is None:
            continue
        features = coerce_features(value)
        if features:
            return features, ".".join(path)
    return {}, None


def features_from_document(document: Any) -> dict[str, FeatureMeta]:
    """Coerce a standalone features document.

    Standalone documents may be a snapshot-like wrapper or a bare feature
    shape; the nesting paths are tried first so that a ``{"features": {...}}``
    wrapper is not mistaken for a map holding a feature named ``features``.
    """
    features, _ = find_features(document)
    if features:
        return features
    return coerce_features(document)


def coerce_redflags(raw: Any) -> dict[str, Any]:
    """``[id, ...]`` becomes ``{id: True}``; objects pass through unchanged."""
    if isinstance(raw, Mapping):
        inner = raw.get("redflags")
        if isinstance(inner, (list, Mapping)) and len(raw) == 1:
            return coerce_redflags(inner)
        return dict(raw)
    if isinstance(raw, list):
        return {item: True for item in raw if isinstance(item, str) and item}
    return {}


def find_redflags(snapshot: Any) -> dict[str, Any]:
    for path in REDFLAG_PATHS:
        value = _lookup(snapshot, path)
        if value is None:
            continue
        redflags = coerce_redflags(value)
        if redflags:
            return redflags
    return {}


def find_global_ids(snapshot: Any) -> dict[str, Any]:
    for path in GLOBAL_ID_PATHS:
        value = _lookup(snapshot, path)
        if isinstance(value, Mapping) and value:
            return dict(value)
    return {}


__all__ = [
    "FEATURE_PATHS",
    "FeatureShape",
    "classify_features",
    "coerce_features",
    "coerce_redflags",
    "features_from_document",
    "find_features",
    "find_global_ids",
    "find_redflags",
    "is_feature_id",
    "split_aliases",
]

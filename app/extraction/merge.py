"""Merge of remote (language model) and fallback extraction results.

Precedence, remote over fallback:

- features: ordered union, remote ids first, then filtered to the allowed set;
- modifiers: fallback keys overwritten key-by-key by remote keys;
- demographics: fallback fields overwritten by every field the remote payload
  set explicitly, including an explicit ``null`` (shallow).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Collection, Iterable, Sequence

from triage_nlp.text import unique
from triage_schemas.extraction import Demographics, ExtractionResult

if TYPE_CHECKING:  # pragma: no cover
    from app.registry.models import Registry


def allowed_features_from(client_features: Sequence[str] | None, registry: "Registry") -> tuple[str, ...]:
    """Client-supplied universe wins outright; otherwise the whole registry."""
    from_client = unique(f for f in (client_features or []) if isinstance(f, str))
    if from_client:
        return tuple(from_client)
    return registry.feature_ids


def merge_features(remote: Iterable[str], fallback: Iterable[str], allowed: Collection[str]) -> list[str]:
    allowed_set = frozenset(allowed)
    return [fid for fid in unique([*remote, *fallback]) if fid in allowed_set]


def merge_demographics(remote: Demographics | None, fallback: Demographics) -> Demographics:
    merged = fallback.model_dump()
    if remote is not None:
        merged.update(remote.model_dump(include=remote.model_fields_set))
    return Demographics.model_validate(merged)


def merge_results(
    remote: ExtractionResult | None,
    fallback: ExtractionResult,
    allowed: Collection[str],
) -> ExtractionResult:
    remote_features = remote.features if remote is not None else []
    modifiers = dict(fallback.modifiers)
    if remote is not None:
        modifiers.update(remote.modifiers)
    return ExtractionResult(
        features=merge_features(remote_features, fallback.features, allowed),
        modifiers=modifiers,
        demographics=merge_demographics(remote.demographics if remote else None, fallback.demographics),
    )


__all__ = ["allowed_features_from", "merge_demographics", "merge_features", "merge_results"]

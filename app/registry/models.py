"""Immutable registry snapshot types."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class FeatureMeta:
    label: str | None = None
    aliases: tuple[str, ...] = ()
    # Any other keys the source carried for this feature (passthrough).
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SourceStatus:
    """What one registry source contributed to a snapshot."""

    source: str
    ok: bool
    detail: str = ""


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Registry:
    """One registry snapshot.

    Rebuilt wholesale on every refresh; nothing mutates a published instance.
    ``alias_to_id`` keeps insertion order, which is also the collision
    precedence (a later alias for the same key overwrote the earlier one).
    """

    features_set: frozenset[str]
    id_to_meta: Mapping[str, FeatureMeta]
    alias_to_id: Mapping[str, str]
    redflags: Mapping[str, Any] = field(default_factory=dict)
    global_ids: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)
    sources: tuple[SourceStatus, ...] = ()

    @classmethod
    def build(
        cls,
        id_to_meta: Mapping[str, FeatureMeta],
        alias_to_id: Mapping[str, str],
        *,
        redflags: Mapping[str, Any] | None = None,
        global_ids: Mapping[str, Any] | None = None,
        raw: Mapping[str, Any] | None = None,
        sources: tuple[SourceStatus, ...] = (),
    ) -> "Registry":
        return cls(
            features_set=frozenset(id_to_meta),
            id_to_meta=_frozen(id_to_meta),
            alias_to_id=_frozen(alias_to_id),
            redflags=_frozen(redflags),
            global_ids=_frozen(global_ids),
            raw=_frozen(raw),
            sources=sources,
        )

    @classmethod
    def empty(cls, sources: tuple[SourceStatus, ...] = ()) -> "Registry":
        return cls.build({}, {}, sources=sources)

    @property
    def feature_ids(self) -> tuple[str, ...]:
        """Feature ids in registry order."""
        return tuple(self.id_to_meta)

    def is_empty(self) -> bool:
        return not self.features_set

"""Full registry rebuild from the configured sources.

Order of operations for one refresh:

1. fetch the snapshot and look for features on its known nesting paths;
2. if that yields nothing, fetch the standalone features document;
3. build the alias index;
4. guard-rail: if the index is still empty and a features document is
   configured, fetch it again and re-index over the previous result;
5. redflags from the snapshot, else from the standalone redflags document.

Unavailable sources degrade to empty; a refresh with no configured sources
returns :meth:`Registry.empty`.
"""

from __future__ import annotations

from typing import Any, Mapping

from observability.logging_config import get_logger

from .aliases import build_alias_index
from .models import FeatureMeta, Registry, SourceStatus
from .shapes import (
    coerce_redflags,
    features_from_document,
    find_features,
    find_global_ids,
    find_redflags,
)
from .sources import Fetcher, SourceResult, Success

logger = get_logger("registry.loader")

SNAPSHOT = "snapshot"
FEATURES = "features"
REDFLAGS = "redflags"


def _status(result: SourceResult, detail: str = "") -> SourceStatus:
    if isinstance(result, Success):
        return SourceStatus(result.source, True, detail)
    return SourceStatus(result.source, False, result.reason)


def index_registry(
    features: Mapping[str, FeatureMeta],
    *,
    redflags: Mapping[str, Any] | None = None,
    global_ids: Mapping[str, Any] | None = None,
    raw: Mapping[str, Any] | None = None,
    sources: tuple[SourceStatus, ...] = (),
) -> Registry:
    """Build the alias index over ``features`` and wrap everything in a snapshot."""
    return Registry.build(
        dict(features),
        build_alias_index(features),
        redflags=redflags,
        global_ids=global_ids,
        raw=raw,
        sources=sources,
    )


def registry_from_snapshot(snapshot: Any) -> Registry:
    """Index a single, already parsed snapshot document (no secondary sources)."""
    features, path = find_features(snapshot)
    return index_registry(
        features,
        redflags=find_redflags(snapshot),
        global_ids=find_global_ids(snapshot),
        raw=snapshot if isinstance(snapshot, Mapping) else {},
        sources=(SourceStatus(SNAPSHOT, True, path or "no features"),),
    )


class RegistryLoader:
    """Rebuilds a :class:`Registry` from up to three source URLs."""

    def __init__(
        self,
        fetch: Fetcher,
        *,
        registry_url: str | None = None,
        features_url: str | None = None,
        redflags_url: str | None = None,
    ) -> None:
        self.fetch = fetch
        self.registry_url = registry_url
        self.features_url = features_url
        self.redflags_url = redflags_url

    @property
    def configured(self) -> bool:
        return any((self.registry_url, self.features_url, self.redflags_url))

    async def _fetch_features_document(self) -> tuple[dict[str, FeatureMeta], SourceStatus]:
        result = await self.fetch(self.features_url, FEATURES)
        if not isinstance(result, Success):
            return {}, _status(result)
        features = features_from_document(result.payload)
        return features, _status(result, f"{len(features)} features")

    async def load(self) -> Registry:
        if not self.configured:
            return Registry.empty()

        statuses: list[SourceStatus] = []
        snapshot: Any = {}
        features: dict[str, FeatureMeta] = {}

        if self.registry_url:
            result = await self.fetch(self.registry_url, SNAPSHOT)
            path = None
            if isinstance(result, Success):
                snapshot = result.payload
                features, path = find_features(snapshot)
            statuses.append(_status(result, path or "no features"))

        if not features and self.features_url:
            features, status = await self._fetch_features_document()
            statuses.append(status)

        if not features and self.features_url:
            logger.warning("registry indexed empty; forcing features source re-fetch")
            features, status = await self._fetch_features_document()
            statuses.append(SourceStatus(status.source, status.ok, f"guard-rail: {status.detail}"))

        redflags = find_redflags(snapshot)
        if not redflags and self.redflags_url:
            result = await self.fetch(self.redflags_url, REDFLAGS)
            if isinstance(result, Success):
                redflags = coerce_redflags(result.payload)
            statuses.append(_status(result, f"{len(redflags)} redflags"))

        registry = index_registry(
            features,
            redflags=redflags,
            global_ids=find_global_ids(snapshot),
            raw=snapshot if isinstance(snapshot, Mapping) else {},
            sources=tuple(statuses),
        )
        logger.info(
            "registry rebuilt",
            extra={
                "features": len(registry.features_set),
                "aliases": len(registry.alias_to_id),
                "redflags": len(registry.redflags),
                "unavailable": [s.source for s in statuses if not s.ok],
            },
        )
        return registry


__all__ = ["RegistryLoader", "index_registry", "registry_from_snapshot"]

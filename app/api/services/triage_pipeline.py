"""Request orchestration for ``POST /api/triage``.

Order per request: registry cache read, one remote extractor round trip,
then local fallback extraction and the merge. Remote or registry failures
only ever degrade the answer; the response is always a valid
``ExtractionResult``.
"""

from __future__ import annotations

from itertools import islice
from typing import Protocol, Sequence

from app.api.schemas import AliasSample, RegistryDebugResponse, SourceStatusOut, TriageRequest
from app.extraction import allowed_features_from, merge_results
from app.infra.safe_logging import safe_log_features, safe_log_text
from app.registry import Registry, RegistryCache
from observability.logging_config import get_logger
from observability.metrics import MetricsClient, get_metrics_client
from observability.timing import timed
from triage_nlp.fallback import fallback_extract
from triage_schemas.extraction import ExtractionResult

logger = get_logger("api.triage_pipeline")

DEBUG_SAMPLE_SIZE = 50


class RemoteExtractor(Protocol):
    async def extract(self, text: str, features_universe: Sequence[str]) -> ExtractionResult | None:
        ...


async def run_triage(
    payload: TriageRequest,
    *,
    cache: RegistryCache,
    extractor: RemoteExtractor | None,
    metrics: MetricsClient | None = None,
) -> ExtractionResult:
    metrics = metrics or get_metrics_client()
    metrics.incr("requests")

    registry = await cache.get()
    allowed = allowed_features_from(payload.features_map, registry)
    text = payload.text or ""

    remote: ExtractionResult | None = None
    if text and allowed and extractor is not None:
        metrics.incr("llm_calls")
        with timed("llm_extract_ms"):
            remote = await extractor.extract(text, allowed)
        if remote is not None:
            metrics.incr("llm_success")

    with timed("fallback_extract_ms"):
        fallback = fallback_extract(text, registry, allowed)
    if fallback.features:
        metrics.incr("fallback_hits")

    merged = merge_results(remote, fallback, allowed)
    metrics.incr("merged_features", value=len(merged.features))

    logger.info(
        "Triage extraction text=%s allowed=%d remote=%s features=%s",
        safe_log_text(text),
        len(allowed),
        "ok" if remote is not None else "none",
        safe_log_features(merged.features),
    )
    return merged


def registry_debug(registry: Registry, built_at: float | None = None) -> RegistryDebugResponse:
    sample = [
        AliasSample(alias=alias, fid=fid)
        for alias, fid in islice(registry.alias_to_id.items(), DEBUG_SAMPLE_SIZE)
    ]
    return RegistryDebugResponse(
        features_count=len(registry.features_set),
        aliases_count=len(registry.alias_to_id),
        redflags_count=len(registry.redflags),
        built_at=built_at,
        sources=[SourceStatusOut(source=s.source, ok=s.ok, detail=s.detail) for s in registry.sources],
        sample_aliases=sample,
    )


__all__ = ["DEBUG_SAMPLE_SIZE", "RemoteExtractor", "registry_debug", "run_triage"]

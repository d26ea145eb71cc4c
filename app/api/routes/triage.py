"""Triage extraction endpoints.

``POST /api/triage`` extracts features, modifiers and demographics from a
free-text narrative. The debug and refresh endpoints expose the registry the
extraction runs against.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import get_llm_extractor, get_registry_cache
from app.api.guards import enforce_extract_request
from app.api.schemas import RegistryDebugResponse, TriageRequest, TriageResponse
from app.api.services.triage_pipeline import registry_debug, run_triage
from app.llm.extractor import LLMExtractor
from app.registry.cache import RegistryCache
from observability.logging_config import get_logger

router = APIRouter(prefix="/api/triage", tags=["triage"])
logger = get_logger("api.triage")

_cache_dep = Depends(get_registry_cache)
_extractor_dep = Depends(get_llm_extractor)


@router.post("", response_model=TriageResponse)
async def triage_extract(
    payload: TriageRequest,
    cache: RegistryCache = _cache_dep,
    extractor: LLMExtractor | None = _extractor_dep,
) -> TriageResponse:
    enforce_extract_request(payload.want)
    return await run_triage(payload, cache=cache, extractor=extractor)


@router.get("/debug", response_model=RegistryDebugResponse)
async def triage_debug(cache: RegistryCache = _cache_dep) -> RegistryDebugResponse:
    registry = await cache.get()
    return registry_debug(registry, cache.built_at)


@router.post("/registry/refresh", response_model=RegistryDebugResponse)
async def triage_registry_refresh(cache: RegistryCache = _cache_dep) -> RegistryDebugResponse:
    registry = await cache.get(force_refresh=True)
    logger.info("Registry refreshed on request: features=%d", len(registry.features_set))
    return registry_debug(registry, cache.built_at)


__all__ = ["router"]

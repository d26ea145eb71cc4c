"""Dependency injection factories for API endpoints.

Shared services live on ``app.state`` (built by the lifespan, or injected by
tests before the app starts) and are handed to routes through ``Depends``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from app.llm.extractor import LLMExtractor
from app.registry.cache import RegistryCache
from observability.logging_config import get_logger

logger = get_logger("api_dependencies")


def get_registry_cache(request: Request) -> RegistryCache:
    cache = getattr(request.app.state, "registry_cache", None)
    if cache is None:
        logger.error("Registry cache requested before application startup")
        raise HTTPException(status_code=503, detail="Registry cache not initialized")
    return cache


def get_llm_extractor(request: Request) -> LLMExtractor | None:
    return getattr(request.app.state, "llm_extractor", None)


__all__ = ["get_llm_extractor", "get_registry_cache"]

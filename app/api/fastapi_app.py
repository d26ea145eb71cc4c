"""FastAPI application wiring for the triage extraction service.

Run with ``uvicorn app.api.fastapi_app:app``.
"""

# ruff: noqa: E402

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse


def _truthy_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


# Prefer explicitly-exported environment variables over values in `.env`.
# Tests opt out (and avoid accidental real network calls) with `TRIAGE_SKIP_DOTENV=1`.
if not _truthy_env("TRIAGE_SKIP_DOTENV"):
    try:
        load_dotenv(dotenv_path=Path(__file__).resolve().parents[2] / ".env", override=False)
    except OSError as e:
        logging.getLogger(__name__).warning(
            "Failed to load .env via python-dotenv (%s); proceeding with OS env only",
            type(e).__name__,
        )

from app.api.routes.metrics import router as metrics_router
from app.api.routes.triage import router as triage_router
from app.api.schemas import HealthResponse
from app.common.exceptions import InvalidRequest
from app.infra.settings import get_infra_settings
from app.llm.extractor import LLMExtractor
from app.registry.cache import RegistryCache
from app.registry.loader import RegistryLoader
from app.registry.sources import HttpFetcher
from config.settings import get_triage_settings
from observability.logging_config import configure_logging, get_logger

SERVICE_NAME = "triage-extract"

logger = get_logger("api")


def build_registry_cache(client: httpx.AsyncClient) -> RegistryCache:
    settings = get_triage_settings()
    infra = get_infra_settings()
    loader = RegistryLoader(
        HttpFetcher(client, timeout_s=infra.registry_fetch_timeout_s),
        registry_url=settings.registry_url,
        features_url=settings.features_url,
        redflags_url=settings.redflags_url,
    )
    return RegistryCache(
        loader,
        ttl_s=settings.registry_ttl_s,
        empty_policy=settings.registry_empty_policy,
    )


async def _warm_registry(cache: RegistryCache) -> None:
    try:
        registry = await cache.get(force_refresh=True)
    except asyncio.CancelledError:
        raise
    except Exception:  # noqa: BLE001
        logger.exception("Registry warmup failed")
        return
    logger.info("Registry warmed: features=%d aliases=%d", len(registry.features_set), len(registry.alias_to_id))


def create_app(warm_registry: bool | None = None) -> FastAPI:
    """Build the application.

    Anything a test sets on ``app.state`` before startup (``http_client``,
    ``registry_cache``, ``llm_extractor``) is kept as-is by the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        infra = get_infra_settings()
        state = app.state
        created: list[str] = []

        if getattr(state, "http_client", None) is None:
            state.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(connect=10.0, read=float(infra.llm_timeout_s), write=30.0, pool=30.0)
            )
            created.append("http_client")
        if getattr(state, "llm_sem", None) is None:
            state.llm_sem = asyncio.Semaphore(infra.llm_concurrency)
            created.append("llm_sem")
        if getattr(state, "registry_cache", None) is None:
            state.registry_cache = build_registry_cache(state.http_client)
            created.append("registry_cache")
        if getattr(state, "llm_extractor", None) is None:
            state.llm_extractor = LLMExtractor.from_settings(state.http_client, sem=state.llm_sem)
            created.append("llm_extractor")
            if not state.llm_extractor.configured:
                logger.warning("Remote extractor not configured (API key or base URL); serving fallback extraction only")

        warm = infra.warm_registry_on_start if warm_registry is None else warm_registry
        warm_task: asyncio.Task[None] | None = None
        if warm:
            warm_task = asyncio.create_task(_warm_registry(state.registry_cache))

        yield

        if warm_task is not None and not warm_task.done():
            warm_task.cancel()
            try:
                await warm_task
            except asyncio.CancelledError:
                pass
        if "http_client" in created:
            await state.http_client.aclose()
        # A restarted app (e.g. a second TestClient) rebuilds what it owns.
        for name in created:
            delattr(state, name)

    app = FastAPI(title="Triage Extract API", version="0.1.0", lifespan=lifespan)

    origins = get_triage_settings().allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidRequest)
    async def _invalid_request(_request: Request, exc: InvalidRequest) -> JSONResponse:
        return JSONResponse(status_code=400, content={"ok": False, "error": str(exc)})

    @app.get("/", response_model=HealthResponse, response_model_by_alias=True)
    async def root(request: Request) -> HealthResponse:
        cache: RegistryCache | None = getattr(request.app.state, "registry_cache", None)
        loaded = cache is not None and not cache.peek().is_empty()
        return HealthResponse(name=SERVICE_NAME, registry_loaded=loaded)

    app.include_router(triage_router)
    app.include_router(metrics_router)
    return app


app = create_app()

__all__ = ["SERVICE_NAME", "app", "build_registry_cache", "create_app"]

"""Metrics endpoint for Prometheus scraping.

Exports the pipeline counters (requests, llm_calls, llm_success,
fallback_hits, merged_features, registry_refresh) and stage timings.

Configuration:
    METRICS_BACKEND: "registry" or "prometheus" collects metrics in process
    METRICS_ENABLED: "true"/"false" overrides whether the endpoints answer

Usage:
    export METRICS_BACKEND=prometheus
    curl http://localhost:8000/metrics
"""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from observability.logging_config import get_logger
from observability.metrics import RegistryMetricsClient, get_metrics_client

router = APIRouter(tags=["metrics"])
logger = get_logger("metrics_api")

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _is_metrics_enabled() -> bool:
    backend = os.getenv("METRICS_BACKEND", "null").lower()
    explicit = os.getenv("METRICS_ENABLED", "").lower()
    if explicit in ("true", "1", "yes"):
        return True
    if explicit in ("false", "0", "no"):
        return False
    return backend in ("registry", "prometheus")


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    response_class=PlainTextResponse,
)
def get_metrics() -> Response:
    """Prometheus text when the registry backend is active, 404 when disabled."""
    if not _is_metrics_enabled():
        return PlainTextResponse(
            content="# Metrics endpoint disabled. Set METRICS_BACKEND=prometheus to enable.\n",
            status_code=404,
        )

    client = get_metrics_client()
    if isinstance(client, RegistryMetricsClient):
        return Response(content=client.export_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)

    return PlainTextResponse(
        content=(
            "# Metrics collection is not using registry backend.\n"
            "# Set METRICS_BACKEND=prometheus for Prometheus-compatible output.\n"
            f"# Current backend: {type(client).__name__}\n"
        ),
    )


@router.get("/metrics/json", summary="Metrics as JSON")
def get_metrics_json() -> dict[str, Any]:
    if not _is_metrics_enabled():
        return {"error": "Metrics disabled", "enabled": False}

    client = get_metrics_client()
    if isinstance(client, RegistryMetricsClient):
        return {"enabled": True, "backend": "registry", **client.export_json()}
    return {
        "enabled": True,
        "backend": type(client).__name__,
        "counters": {},
        "gauges": {},
        "histograms": {},
        "note": "JSON export only available with registry backend",
    }


__all__ = ["router"]

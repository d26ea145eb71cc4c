"""Infrastructure/runtime settings (env-driven).

Operational knobs for outbound calls and startup behavior, toggled via
environment variables without touching the domain configuration in
``config.settings``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(*names: str, default: int) -> int:
    for name in names:
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            continue
        try:
            return int(raw.strip())
        except ValueError:
            continue
    return default


def _get_float(*names: str, default: float) -> float:
    for name in names:
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            continue
        try:
            return float(raw.strip())
        except ValueError:
            continue
    return default


def _env_first(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip() != "":
            return value
    return None


@dataclass(frozen=True)
class InfraSettings:
    """Timeouts, concurrency and startup toggles."""

    llm_timeout_s: float
    llm_concurrency: int
    registry_fetch_timeout_s: float
    warm_registry_on_start: bool

    @staticmethod
    def from_env() -> "InfraSettings":
        llm_timeout_s = _get_float("LLM_TIMEOUT_S", "TRIAGE_LLM_TIMEOUT_S", default=30.0)
        llm_concurrency = max(1, _get_int("LLM_CONCURRENCY", "TRIAGE_LLM_CONCURRENCY", default=4))
        registry_fetch_timeout_s = _get_float(
            "REGISTRY_FETCH_TIMEOUT_S", "TRIAGE_REGISTRY_FETCH_TIMEOUT_S", default=10.0
        )

        warm_raw = _env_first("WARM_REGISTRY", "TRIAGE_WARM_REGISTRY")
        warm_registry_on_start = True if warm_raw is None else _truthy(warm_raw)

        return InfraSettings(
            llm_timeout_s=llm_timeout_s,
            llm_concurrency=llm_concurrency,
            registry_fetch_timeout_s=registry_fetch_timeout_s,
            warm_registry_on_start=warm_registry_on_start,
        )


@lru_cache(maxsize=1)
def get_infra_settings() -> InfraSettings:
    return InfraSettings.from_env()


__all__ = ["InfraSettings", "get_infra_settings"]

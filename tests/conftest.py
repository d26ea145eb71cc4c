"""
Pytest configuration and shared fixtures.
"""

import os

# Must be set before ``app.api.fastapi_app`` is imported anywhere.
os.environ.setdefault("TRIAGE_SKIP_DOTENV", "1")
os.environ.setdefault("WARM_REGISTRY", "0")

from typing import Any, Dict, List

import pytest

from app.registry.loader import registry_from_snapshot
from app.registry.models import Registry
from app.registry.sources import Success, Unavailable
from config.settings import get_triage_settings
from app.infra.settings import get_infra_settings
from observability.metrics import RegistryMetricsClient, reset_metrics_client, set_metrics_client


class StaticLoader:
    """Registry source that hands out prepared registries in order."""

    def __init__(self, *registries: Registry):
        self.registries = list(registries)
        self.calls = 0

    async def load(self) -> Registry:
        self.calls += 1
        index = min(self.calls, len(self.registries)) - 1
        return self.registries[index]


class DictFetcher:
    """Fetcher serving JSON documents from a dict; unknown URLs are unavailable.

    ``sequences`` maps a URL to payloads served one per call, the last one
    repeating.
    """

    def __init__(self, documents: Dict[str, Any], sequences: Dict[str, List[Any]] | None = None):
        self.documents = documents
        self.sequences = sequences or {}
        self.calls: List[str] = []

    async def __call__(self, url: str, source: str):
        self.calls.append(url)
        if url in self.sequences:
            payloads = self.sequences[url]
            served = self.calls.count(url)
            return Success(source, payloads[min(served, len(payloads)) - 1])
        if url not in self.documents:
            return Unavailable(source, "status 404")
        return Success(source, self.documents[url])


@pytest.fixture(autouse=True)
def _isolated_settings():
    """Settings are cached per process; tests that patch env need a fresh read."""
    get_triage_settings.cache_clear()
    get_infra_settings.cache_clear()
    yield
    get_triage_settings.cache_clear()
    get_infra_settings.cache_clear()


@pytest.fixture
def metrics():
    """Process-wide in-memory metrics client, reset after the test."""
    client = RegistryMetricsClient()
    set_metrics_client(client)
    yield client
    reset_metrics_client()


@pytest.fixture
def registry_snapshot() -> Dict[str, Any]:
    """Snapshot document nesting features under ``registry.featuresMap``."""
    return {
        "version": "2024-05-01",
        "registry": {
            "featuresMap": {
                "rinite_alergica": {"label": "Rinite Alérgica"},
                "febre": {"label": "Febre", "aliases": ["febre alta", "temperatura elevada"]},
                "dor.garganta": {"label": "Dor de garganta (odinofagia)"},
                "obstrucao_nasal": {
                    "label": "Obstrução nasal",
                    "aliases": "nariz entupido; congestão nasal",
                },
            }
        },
        "redflags": ["estridor", "trismo"],
    }


@pytest.fixture
def registry(registry_snapshot) -> Registry:
    return registry_from_snapshot(registry_snapshot)


@pytest.fixture
def static_loader():
    return StaticLoader


@pytest.fixture
def dict_fetcher():
    return DictFetcher

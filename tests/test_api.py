"""
Tests for the HTTP surface.
"""

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.api.fastapi_app import create_app
from app.registry.cache import RegistryCache
from app.registry.loader import index_registry
from app.registry.shapes import coerce_features
from observability.metrics import RegistryMetricsClient
from triage_schemas.extraction import Demographics, ExtractionResult


class FakeExtractor:
    """Remote extractor double recording what it was asked."""

    def __init__(self, result: Optional[ExtractionResult] = None):
        self.result = result
        self.calls: List[Tuple[str, tuple]] = []

    async def extract(self, text, features_universe):
        self.calls.append((text, tuple(features_universe)))
        return self.result


@pytest.fixture
def loader(static_loader, registry):
    return static_loader(registry)


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def client(loader, extractor, metrics):
    app = create_app(warm_registry=False)
    app.state.registry_cache = RegistryCache(loader, metrics=metrics)
    app.state.llm_extractor = extractor
    with TestClient(app) as test_client:
        yield test_client


class TestTriageEndpoint:
    def test_remote_unavailable_and_no_features(self, client, extractor):
        response = client.post("/api/triage", json={"text": "sem queixas", "want": "extract"})

        assert response.status_code == 200
        assert response.json() == {
            "features": [],
            "modifiers": {},
            "demographics": {"idade": None, "sexo": None, "comorbidades": []},
        }
        assert len(extractor.calls) == 1

    def test_unsupported_want_is_rejected_before_any_work(self, client, loader, extractor):
        response = client.post("/api/triage", json={"text": "febre", "want": "summarize"})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "only 'extract' supported for now"}
        assert loader.calls == 0
        assert extractor.calls == []

    def test_missing_want_is_rejected(self, client, loader):
        response = client.post("/api/triage", json={"text": "febre"})

        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert loader.calls == 0

    def test_fallback_only(self, client):
        response = client.post(
            "/api/triage",
            json={"text": "Paciente M, 45 anos, com rinite alérgica e 38.5 graus C", "want": "extract"},
        )

        body = response.json()
        assert body["features"] == ["rinite_alergica"]
        assert body["modifiers"] == {"temperatura_c": 38.5}
        assert body["demographics"]["idade"] == 45
        assert body["demographics"]["sexo"] == "M"

    def test_remote_result_is_merged_first(self, client, extractor):
        extractor.result = ExtractionResult(
            features=["otalgia_fora", "dor.garganta"],
            modifiers={"temperatura_c": 39.0, "duracao_dias": 3},
            demographics=Demographics.model_validate({"sexo": "F"}),
        )

        response = client.post(
            "/api/triage",
            json={"text": "febre alta, dor de garganta, homem de 45 anos, 38 graus C", "want": "extract"},
        )

        body = response.json()
        assert body["features"] == ["dor.garganta", "febre"]
        assert body["modifiers"] == {"temperatura_c": 39.0, "duracao_dias": 3}
        assert body["demographics"] == {"idade": 45, "sexo": "F", "comorbidades": []}

    def test_client_feature_universe(self, client, extractor):
        response = client.post(
            "/api/triage",
            json={
                "text": "febre alta e nariz entupido",
                "want": "extract",
                "featuresMap": ["obstrucao_nasal"],
            },
        )

        assert response.json()["features"] == ["obstrucao_nasal"]
        assert extractor.calls == [("febre alta e nariz entupido", ("obstrucao_nasal",))]

    def test_loose_body_is_tolerated(self, client, extractor):
        null_text = client.post("/api/triage", json={"text": None, "want": "extract"})
        mixed_map = client.post(
            "/api/triage",
            json={"text": "nariz entupido", "want": "extract", "featuresMap": [7, None, "obstrucao_nasal"]},
        )

        assert null_text.status_code == 200
        assert null_text.json()["features"] == []
        assert mixed_map.status_code == 200
        assert mixed_map.json()["features"] == ["obstrucao_nasal"]
        assert extractor.calls == [("nariz entupido", ("obstrucao_nasal",))]

    def test_empty_text_skips_remote(self, client, extractor):
        response = client.post("/api/triage", json={"want": "extract"})

        assert response.status_code == 200
        assert response.json()["features"] == []
        assert extractor.calls == []

    def test_pipeline_counters(self, client, extractor, metrics):
        client.post("/api/triage", json={"text": "febre alta", "want": "extract"})
        client.post("/api/triage", json={"text": "", "want": "extract"})

        assert metrics.counter_value("requests") == 2
        assert metrics.counter_value("llm_calls") == 1
        assert metrics.counter_value("llm_success") == 0
        assert metrics.counter_value("fallback_hits") == 1
        assert metrics.counter_value("merged_features") == 1


class TestRegistryRecords:
    def test_record_list_registry(self, static_loader, extractor, metrics):
        features = coerce_features(
            [{"id": "febre", "label": "Febre", "aliases": "febre alta, temperatura elevada"}]
        )
        app = create_app(warm_registry=False)
        app.state.registry_cache = RegistryCache(static_loader(index_registry(features)), metrics=metrics)
        app.state.llm_extractor = extractor

        with TestClient(app) as client:
            triage = client.post("/api/triage", json={"text": "temperatura elevada", "want": "extract"})
            debug = client.get("/api/triage/debug")

        assert triage.json()["features"] == ["febre"]
        aliases = {item["alias"] for item in debug.json()["sample_aliases"]}
        assert {"febre alta", "temperatura elevada", "febre"} <= aliases


class TestOperationalEndpoints:
    def test_health_reports_registry_state(self, client):
        before = client.get("/")
        client.get("/api/triage/debug")
        after = client.get("/")

        assert before.json() == {"ok": True, "name": "triage-extract", "registryLoaded": False}
        assert after.json()["registryLoaded"] is True

    def test_debug(self, client, registry):
        body = client.get("/api/triage/debug").json()

        assert body["features_count"] == 4
        assert body["aliases_count"] == len(registry.alias_to_id)
        assert body["redflags_count"] == 2
        assert len(body["sample_aliases"]) <= 50
        assert body["sample_aliases"][0] == {"alias": "rinite alergica", "fid": "rinite_alergica"}

    def test_refresh_forces_reload(self, client, loader):
        client.get("/api/triage/debug")
        response = client.post("/api/triage/registry/refresh")

        assert response.status_code == 200
        assert response.json()["features_count"] == 4
        assert loader.calls == 2

    def test_metrics_endpoint(self, client, monkeypatch):
        monkeypatch.setenv("METRICS_BACKEND", "prometheus")
        client.post("/api/triage", json={"text": "febre", "want": "extract"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "triage_requests_total 1" in response.text

    def test_metrics_disabled(self, client, monkeypatch):
        monkeypatch.setenv("METRICS_BACKEND", "null")
        monkeypatch.delenv("METRICS_ENABLED", raising=False)

        assert client.get("/metrics").status_code == 404
        assert client.get("/metrics/json").json()["enabled"] is False

"""
Tests for environment-driven configuration.
"""

import pytest

from app.infra.settings import InfraSettings
from config.settings import TriageSettings, get_triage_settings


class TestTriageSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LLM_MODEL", "OPENAI_MODEL", "LLM_TEMPERATURE", "REGISTRY_URL", "FEATURES_URL", "REDFLAGS_URL"):
            monkeypatch.delenv(name, raising=False)

        settings = TriageSettings()

        assert settings.llm_model == "gpt-5-nano"
        assert settings.llm_temperature == 1.0
        assert settings.registry_ttl_s == 600.0
        assert settings.has_registry_sources is False

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("REGISTRY_URL", "https://registry.test/snapshot.json")
        monkeypatch.setenv("FEATURES_URL", "   ")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
        monkeypatch.setenv("ALLOW_ORIGINS", "https://a.test, https://b.test,")
        monkeypatch.setenv("REGISTRY_EMPTY_POLICY", "keep_last_good")

        settings = get_triage_settings()

        assert settings.registry_url == "https://registry.test/snapshot.json"
        assert settings.features_url is None
        assert settings.llm_model == "gpt-test"
        assert settings.allowed_origins == ["https://a.test", "https://b.test"]
        assert settings.registry_empty_policy == "keep_last_good"
        assert settings.has_registry_sources is True

    @pytest.mark.parametrize("raw", ["0", "0.0", "0.00", " "])
    def test_zero_temperature_falls_back(self, monkeypatch, raw):
        monkeypatch.setenv("LLM_TEMPERATURE", raw)
        assert TriageSettings().llm_temperature == 1.0

    def test_explicit_temperature(self, monkeypatch):
        monkeypatch.setenv("LLM_TEMPERATURE", "0.2")
        assert TriageSettings().llm_temperature == 0.2


class TestInfraSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LLM_TIMEOUT_S", "LLM_CONCURRENCY", "WARM_REGISTRY", "TRIAGE_WARM_REGISTRY"):
            monkeypatch.delenv(name, raising=False)

        settings = InfraSettings.from_env()

        assert settings.llm_timeout_s == 30.0
        assert settings.llm_concurrency == 4
        assert settings.warm_registry_on_start is True

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_TIMEOUT_S", "5")
        monkeypatch.setenv("LLM_CONCURRENCY", "0")
        monkeypatch.setenv("WARM_REGISTRY", "no")

        settings = InfraSettings.from_env()

        assert settings.llm_timeout_s == 5.0
        assert settings.llm_concurrency == 1
        assert settings.warm_registry_on_start is False

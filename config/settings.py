"""Configuration settings using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class TriageSettings(BaseSettings):
    """Source URLs, model selection and CORS for the triage service.

    Every field reads the environment variable of the same name
    (case-insensitive), e.g. ``REGISTRY_URL`` or ``LLM_MODEL``.
    """

    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com"
    llm_model: str = Field(
        default="gpt-5-nano",
        validation_alias=AliasChoices("LLM_MODEL", "OPENAI_MODEL"),
    )
    # The nano model only accepts its default sampling temperature.
    llm_temperature: float = 1.0

    registry_url: Optional[str] = None
    features_url: Optional[str] = None
    redflags_url: Optional[str] = None

    registry_ttl_s: float = 600.0
    registry_empty_policy: Literal["overwrite", "keep_last_good"] = "overwrite"

    # Comma-separated origins; empty means any origin.
    allow_origins: str = ""

    model_config = {"extra": "ignore", "populate_by_name": True, "protected_namespaces": ()}

    @field_validator("registry_url", "features_url", "redflags_url", "openai_api_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("llm_temperature", mode="before")
    @classmethod
    def _temperature_default(cls, value: object) -> object:
        # A blank or zero env value falls back to the fixed default.
        if value is None or (isinstance(value, str) and not value.strip()):
            return 1.0
        try:
            number = float(value)
        except (TypeError, ValueError):
            return value
        return number or 1.0

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allow_origins.split(",") if origin.strip()]

    @property
    def has_registry_sources(self) -> bool:
        return any((self.registry_url, self.features_url, self.redflags_url))


@lru_cache(maxsize=1)
def get_triage_settings() -> TriageSettings:
    """Get cached TriageSettings from environment."""
    return TriageSettings()

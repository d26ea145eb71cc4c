"""Base Pydantic schemas for the FastAPI integration layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from triage_schemas.extraction import Demographics, ExtractionResult


class TriageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    want: str | None = None
    features_map: list[Any] = Field(
        default_factory=list,
        alias="featuresMap",
        description="Feature universe for this request; empty means the whole registry.",
    )

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("features_map", mode="before")
    @classmethod
    def _coerce_features_map(cls, value: Any) -> list[Any]:
        # Non-string entries are dropped later when the universe is built.
        return value if isinstance(value, list) else []


TriageResponse = ExtractionResult


class AliasSample(BaseModel):
    alias: str
    fid: str


class SourceStatusOut(BaseModel):
    source: str
    ok: bool
    detail: str = ""


class RegistryDebugResponse(BaseModel):
    features_count: int
    aliases_count: int
    redflags_count: int
    built_at: float | None = None
    sources: list[SourceStatusOut] = Field(default_factory=list)
    sample_aliases: list[AliasSample] = Field(default_factory=list)


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    name: str
    registry_loaded: bool = Field(alias="registryLoaded")


__all__ = [
    "AliasSample",
    "Demographics",
    "HealthResponse",
    "RegistryDebugResponse",
    "SourceStatusOut",
    "TriageRequest",
    "TriageResponse",
]

"""Extraction payload models shared by the extractors, the merge step and the API."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Demographics(BaseModel):
    """Patient demographics found in the narrative.

    ``model_fields_set`` records which fields a source actually supplied; the
    merge step relies on it to tell an explicit ``null`` from a missing key.
    """

    model_config = ConfigDict(extra="ignore")

    idade: Optional[int] = Field(default=None, ge=0, le=120)
    sexo: Optional[Literal["M", "F"]] = None
    comorbidades: list[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    features: list[str] = Field(default_factory=list)
    modifiers: dict[str, Any] = Field(default_factory=dict)
    demographics: Demographics = Field(default_factory=Demographics)


class RemoteExtractPayload(BaseModel):
    """Arguments of the ``extract`` tool call returned by the language model."""

    model_config = ConfigDict(extra="ignore")

    features: list[str] = Field(default_factory=list)
    modifiers: dict[str, Any] = Field(default_factory=dict)
    demographics: Demographics = Field(default_factory=Demographics)

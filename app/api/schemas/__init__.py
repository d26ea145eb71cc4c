"""API schemas package.

Request and response models for the triage HTTP surface.
"""

from app.api.schemas.base import (
    AliasSample,
    HealthResponse,
    RegistryDebugResponse,
    SourceStatusOut,
    TriageRequest,
    TriageResponse,
)

__all__ = [
    "AliasSample",
    "HealthResponse",
    "RegistryDebugResponse",
    "SourceStatusOut",
    "TriageRequest",
    "TriageResponse",
]

"""Triage API services package."""

from app.api.services.triage_pipeline import RemoteExtractor, registry_debug, run_triage

__all__ = ["RemoteExtractor", "registry_debug", "run_triage"]

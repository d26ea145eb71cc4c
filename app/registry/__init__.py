"""Feature registry: source coercion, alias indexing and the refresh cache.

Keep this package import-light; the CLI (``app.registry.cli``) pulls in
Typer and rich, which the API does not need.
"""

from __future__ import annotations

from .cache import EmptyRegistryPolicy, RegistryCache
from .loader import RegistryLoader, index_registry, registry_from_snapshot
from .models import FeatureMeta, Registry, SourceStatus

__all__ = [
    "EmptyRegistryPolicy",
    "FeatureMeta",
    "Registry",
    "RegistryCache",
    "RegistryLoader",
    "SourceStatus",
    "index_registry",
    "registry_from_snapshot",
]

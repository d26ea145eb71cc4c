"""REST API surface for the triage extraction service.

Keep this module import-light: the CLI imports submodules under ``app.*``
without needing FastAPI middleware or the outbound HTTP client the app builds.
"""

from __future__ import annotations


def __getattr__(name: str):
    if name == "app":
        from .fastapi_app import app

        return app
    raise AttributeError(name)


__all__ = ["app"]

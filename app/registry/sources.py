"""Fetching of raw registry documents.

A fetch never raises to its caller: it returns a :data:`SourceResult`, either
:class:`Success` with the parsed JSON payload or :class:`Unavailable` with a
reason. Network errors, non-2xx answers and unparsable bodies all degrade to
``Unavailable`` and are logged.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Union

import httpx

from app.common.exceptions import MalformedSource, SourceUnavailable
from observability.logging_config import get_logger

logger = get_logger("registry.sources")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class Success:
    source: str
    payload: Any


@dataclass(frozen=True)
class Unavailable:
    source: str
    reason: str


SourceResult = Union[Success, Unavailable]
Fetcher = Callable[[str, str], Awaitable[SourceResult]]


def _cache_bust_params() -> dict[str, str]:
    return {"_ts": str(int(time.time() * 1000))}


def _parse_json(source: str, body: str | bytes) -> Any:
    try:
        return json.loads(body)
    except (TypeError, ValueError) as exc:
        raise MalformedSource(source, f"invalid JSON: {exc}") from exc


class HttpFetcher:
    """Fetch registry documents over HTTP with cache busting."""

    def __init__(self, client: httpx.AsyncClient, *, timeout_s: float = 10.0) -> None:
        self.client = client
        self.timeout_s = timeout_s

    async def _get(self, url: str, source: str) -> Any:
        try:
            resp = await self.client.get(
                url,
                params=_cache_bust_params(),
                headers=NO_CACHE_HEADERS,
                timeout=self.timeout_s,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SourceUnavailable(source, f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise SourceUnavailable(source, f"status {resp.status_code}")
        return _parse_json(source, resp.content)

    async def __call__(self, url: str, source: str) -> SourceResult:
        try:
            payload = await self._get(url, source)
        except SourceUnavailable as exc:
            logger.warning(
                "registry source unavailable",
                extra={"source": source, "reason": exc.reason, "malformed": isinstance(exc, MalformedSource)},
            )
            return Unavailable(source, exc.reason)
        return Success(source, payload)


async def load_json_file(path: str, source: str) -> SourceResult:
    """Read a registry document from disk (CLI and offline use)."""
    try:
        try:
            body = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailable(source, f"{type(exc).__name__}: {exc}") from exc
        payload = _parse_json(source, body)
    except SourceUnavailable as exc:
        logger.warning("registry file unavailable", extra={"source": source, "reason": exc.reason})
        return Unavailable(source, exc.reason)
    return Success(source, payload)


__all__ = [
    "Fetcher",
    "HttpFetcher",
    "NO_CACHE_HEADERS",
    "SourceResult",
    "Success",
    "Unavailable",
    "load_json_file",
]

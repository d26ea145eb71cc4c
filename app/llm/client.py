"""Async HTTP helper for the Chat Completions endpoint.

Wraps one outbound call with:
- an asyncio semaphore for concurrency limiting
- a hard deadline for the whole call
- conversion of every failure into :class:`RemoteExtractorUnavailable`

There are no retries; a failed call is terminal for that request and the
caller falls back to local extraction.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import httpx

from app.common.exceptions import RemoteExtractorUnavailable


def normalize_base_url(base_url: str | None) -> str:
    normalized = (base_url or "").strip().rstrip("/")
    if normalized.endswith("/v1"):
        normalized = normalized[:-3].rstrip("/")
    return normalized or "https://api.openai.com"


def _request_id(response: httpx.Response) -> str | None:
    for header_name in ("x-request-id", "request-id", "openai-request-id"):
        value = response.headers.get(header_name)
        if value:
            return value
    return None


async def post_json(
    *,
    client: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str] | None,
    json_body: Any,
    sem: asyncio.Semaphore | None = None,
    timeout_s: float = 30.0,
) -> dict[str, Any]:
    """POST ``json_body`` and return the decoded JSON object."""

    async def _send() -> httpx.Response:
        return await client.post(url, headers=dict(headers or {}), json=json_body, timeout=timeout_s)

    try:
        if sem is None:
            resp = await asyncio.wait_for(_send(), timeout=timeout_s)
        else:
            async with sem:
                resp = await asyncio.wait_for(_send(), timeout=timeout_s)
    except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as exc:
        raise RemoteExtractorUnavailable(f"transport error: {type(exc).__name__}") from exc

    if not resp.is_success:
        request_id = _request_id(resp)
        suffix = f" request_id={request_id}" if request_id else ""
        raise RemoteExtractorUnavailable(f"status {resp.status_code}{suffix}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise RemoteExtractorUnavailable("response body is not JSON") from exc
    if not isinstance(data, dict):
        raise RemoteExtractorUnavailable("response body is not a JSON object")
    return data


__all__ = ["normalize_base_url", "post_json"]

"""Remote extractor adapter backed by a Chat Completions tool call."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from app.common.exceptions import RemoteExtractorUnavailable
from app.infra.settings import get_infra_settings
from app.llm.client import normalize_base_url, post_json
from app.llm.prompts import EXTRACT_TOOL_NAME, build_extract_request
from config.settings import TriageSettings, get_triage_settings
from observability.logging_config import get_logger
from triage_nlp.text import unique
from triage_schemas.extraction import ExtractionResult, RemoteExtractPayload

logger = get_logger("llm.extractor")


def parse_tool_arguments(data: dict[str, Any]) -> RemoteExtractPayload:
    """Pull the ``extract`` tool call out of a Chat Completions response.

    Raises:
        RemoteExtractorUnavailable: no tool call, wrong tool, unparseable
            arguments or arguments that fail schema validation.
    """
    try:
        message = data["choices"][0]["message"]
        call = message["tool_calls"][0]
        function = call["function"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RemoteExtractorUnavailable("response has no tool call") from exc

    if function.get("name") != EXTRACT_TOOL_NAME:
        raise RemoteExtractorUnavailable(f"unexpected tool {function.get('name')!r}")

    raw_args = function.get("arguments")
    try:
        arguments = json.loads(raw_args) if isinstance(raw_args, str) else raw_args
    except json.JSONDecodeError as exc:
        raise RemoteExtractorUnavailable("tool arguments are not JSON") from exc
    if not isinstance(arguments, dict):
        raise RemoteExtractorUnavailable("tool arguments are not an object")

    try:
        return RemoteExtractPayload.model_validate(arguments)
    except ValidationError as exc:
        raise RemoteExtractorUnavailable(f"tool arguments failed validation ({exc.error_count()} errors)") from exc


def _completions_url(base_url: str) -> str | None:
    """Chat Completions endpoint for ``base_url``, or ``None`` when it does not parse."""
    url = f"{base_url}/v1/chat/completions"
    try:
        httpx.URL(url)
    except httpx.InvalidURL:
        return None
    return url


class LLMExtractor:
    """Asks the language model for features within a given universe.

    ``extract`` never raises: every failure is logged and reported as ``None``
    so the caller can carry on with the fallback result alone.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        model: str,
        temperature: float = 1.0,
        base_url: str | None = None,
        timeout_s: float = 30.0,
        sem: asyncio.Semaphore | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self.base_url = normalize_base_url(base_url)
        self.timeout_s = timeout_s
        self._sem = sem
        self._url = _completions_url(self.base_url)

    @classmethod
    def from_settings(
        cls,
        client: httpx.AsyncClient,
        *,
        settings: TriageSettings | None = None,
        sem: asyncio.Semaphore | None = None,
    ) -> "LLMExtractor":
        settings = settings or get_triage_settings()
        return cls(
            client,
            api_key=settings.openai_api_key,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            base_url=settings.openai_base_url,
            timeout_s=get_infra_settings().llm_timeout_s,
            sem=sem,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key) and self._url is not None

    @property
    def url(self) -> str | None:
        return self._url

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def extract(self, text: str, features_universe: Sequence[str]) -> ExtractionResult | None:
        if not self._api_key:
            logger.info("Remote extractor skipped: no API key configured")
            return None
        if self._url is None:
            logger.warning("Remote extractor skipped: invalid base URL", extra={"base_url": self.base_url})
            return None

        universe = list(features_universe)
        body = build_extract_request(text, universe, model=self.model, temperature=self.temperature)
        try:
            data = await post_json(
                client=self._client,
                url=self._url,
                headers=self._get_headers(),
                json_body=body,
                sem=self._sem,
                timeout_s=self.timeout_s,
            )
            payload = parse_tool_arguments(data)
        except RemoteExtractorUnavailable as exc:
            logger.warning("Remote extractor unavailable: %s", exc, extra={"model": self.model})
            return None

        allowed = frozenset(universe)
        return ExtractionResult(
            features=[fid for fid in unique(payload.features) if fid in allowed],
            modifiers=payload.modifiers,
            demographics=payload.demographics,
        )


__all__ = ["LLMExtractor", "parse_tool_arguments"]

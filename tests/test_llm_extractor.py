"""
Tests for the language-model extractor adapter.
"""

import asyncio
import json

import httpx
import pytest

from app.common.exceptions import RemoteExtractorUnavailable
from app.llm.client import normalize_base_url, post_json
from app.llm.extractor import LLMExtractor, parse_tool_arguments
from app.llm.prompts import EXTRACT_TOOL_NAME, build_user_prompt
from config.settings import TriageSettings

UNIVERSE = ("febre", "otalgia")


def _completion(arguments, name=EXTRACT_TOOL_NAME) -> dict:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": "call_1",
                            "type": "function",
                            "function": {"name": name, "arguments": arguments},
                        }
                    ],
                }
            }
        ]
    }


def _extract(handler, api_key="sk-test", text="febre há 2 dias", universe=UNIVERSE):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            extractor = LLMExtractor(
                client,
                api_key=api_key,
                model="gpt-5-nano",
                base_url="https://llm.test/v1",
                timeout_s=1.0,
                sem=asyncio.Semaphore(1),
            )
            return await extractor.extract(text, universe)

    return asyncio.run(run())


class TestLLMExtractor:
    def test_success_filters_to_universe(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=_completion(
                    {
                        "features": ["febre", "inventada", "febre"],
                        "modifiers": {"duracao_dias": 2},
                        "demographics": {"idade": 30, "sexo": "F"},
                    }
                ),
            )

        result = _extract(handler)

        assert result is not None
        assert result.features == ["febre"]
        assert result.modifiers == {"duracao_dias": 2}
        assert result.demographics.idade == 30
        assert result.demographics.sexo == "F"
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        body = seen["body"]
        assert body["model"] == "gpt-5-nano"
        assert body["temperature"] == 1.0
        assert body["tool_choice"]["function"]["name"] == EXTRACT_TOOL_NAME
        assert "featuresUniverse: febre, otalgia" in body["messages"][1]["content"]

    def test_no_api_key_skips_call(self):
        def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
            raise AssertionError("no request expected")

        assert _extract(handler, api_key=None) is None

    def test_error_status(self):
        assert _extract(lambda request: httpx.Response(500, json={"error": "boom"})) is None

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        assert _extract(handler) is None

    def test_schema_violation(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion({"features": "febre"}))

        assert _extract(handler) is None

    def test_out_of_range_age_is_rejected(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion({"features": [], "demographics": {"idade": 150}}))

        assert _extract(handler) is None

    def test_malformed_base_url_degrades(self):
        def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
            raise AssertionError("no request expected")

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                extractor = LLMExtractor(client, api_key="sk-test", model="gpt-5-nano", base_url="http://[::1")
                return extractor, await extractor.extract("febre alta", ["febre"])

        extractor, result = asyncio.run(run())

        assert result is None
        assert extractor.configured is False
        assert extractor.url is None


class TestPostJson:
    def test_invalid_url_is_unavailable(self):
        async def run():
            async with httpx.AsyncClient() as client:
                await post_json(client=client, url="http://[::1/v1/chat/completions", headers=None, json_body={})

        with pytest.raises(RemoteExtractorUnavailable):
            asyncio.run(run())


class TestParseToolArguments:
    def test_valid(self):
        payload = parse_tool_arguments(_completion({"features": ["febre"]}))
        assert payload.features == ["febre"]
        assert payload.demographics.model_fields_set == set()

    def test_wrong_tool(self):
        with pytest.raises(RemoteExtractorUnavailable):
            parse_tool_arguments(_completion({"features": []}, name="summarize"))

    def test_invalid_json_arguments(self):
        with pytest.raises(RemoteExtractorUnavailable):
            parse_tool_arguments(_completion("{not json"))

    def test_missing_tool_call(self):
        with pytest.raises(RemoteExtractorUnavailable):
            parse_tool_arguments({"choices": [{"message": {"content": "texto livre"}}]})

    def test_no_choices(self):
        with pytest.raises(RemoteExtractorUnavailable):
            parse_tool_arguments({"choices": []})


class TestConfiguration:
    def test_from_settings(self):
        settings = TriageSettings(openai_api_key="sk-x", llm_model="gpt-test", openai_base_url="https://proxy.test/")

        async def run():
            async with httpx.AsyncClient() as client:
                return LLMExtractor.from_settings(client, settings=settings)

        extractor = asyncio.run(run())

        assert extractor.configured
        assert extractor.model == "gpt-test"
        assert extractor.url == "https://proxy.test/v1/chat/completions"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, "https://api.openai.com"),
            ("", "https://api.openai.com"),
            ("https://llm.test/v1/", "https://llm.test"),
            ("https://llm.test", "https://llm.test"),
        ],
    )
    def test_normalize_base_url(self, raw, expected):
        assert normalize_base_url(raw) == expected

    def test_user_prompt_lists_universe(self):
        prompt = build_user_prompt("febre", ["febre", "otalgia"])
        assert prompt.endswith("featuresUniverse: febre, otalgia")

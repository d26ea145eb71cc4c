"""Prompt and tool schema for the ``extract`` function call."""

from __future__ import annotations

from typing import Any, Iterable

EXTRACT_TOOL_NAME = "extract"

SYSTEM_PROMPT = " ".join(
    [
        "Você é um assistente clínico de triagem em Otorrinolaringologia.",
        "Extraia APENAS os identificadores canônicos de FEATURES presentes no texto.",
        "Somente IDs contidos no 'featuresUniverse' são válidos.",
        "Responda via função 'extract' no formato JSON.",
        "Não faça diagnóstico; apenas extração semântica de sinais/sintomas/modificadores/demografia.",
    ]
)

EXTRACT_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "features": {"type": "array", "items": {"type": "string"}},
        "modifiers": {"type": "object", "additionalProperties": True},
        "demographics": {
            "type": "object",
            "properties": {
                "idade": {"type": ["integer", "null"]},
                "sexo": {"type": ["string", "null"], "enum": ["M", "F", None]},
                "comorbidades": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": True,
        },
    },
    "required": ["features"],
}

EXTRACT_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": EXTRACT_TOOL_NAME,
        "description": "Retorne features/modifiers/demographics extraídos do texto.",
        "parameters": EXTRACT_PARAMETERS,
    },
}


def build_user_prompt(text: str, features_universe: Iterable[str]) -> str:
    return "\n".join(
        [
            "Texto do paciente (pt-BR):",
            text,
            "",
            f"featuresUniverse: {', '.join(features_universe)}",
        ]
    )


def build_extract_request(
    text: str,
    features_universe: Iterable[str],
    *,
    model: str,
    temperature: float,
) -> dict[str, Any]:
    """Chat Completions body forcing a single ``extract`` tool call."""
    return {
        "model": model,
        "temperature": temperature,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(text, features_universe)},
        ],
        "tools": [EXTRACT_TOOL],
        "tool_choice": {"type": "function", "function": {"name": EXTRACT_TOOL_NAME}},
    }


__all__ = [
    "EXTRACT_TOOL",
    "EXTRACT_TOOL_NAME",
    "SYSTEM_PROMPT",
    "build_extract_request",
    "build_user_prompt",
]

"""Language-model extraction adapter."""

from app.llm.extractor import LLMExtractor, parse_tool_arguments

__all__ = ["LLMExtractor", "parse_tool_arguments"]

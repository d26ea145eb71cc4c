"""Structured logging configuration."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

_HANDLER_NAME = "triage-structured"


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs JSON-structured log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Fields passed through StructuredLogger land under ``extra_fields``.
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_dict.update(extra_fields)

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that merges default and per-call structured fields.

    Usage:
        logger = get_logger("registry.loader", component="registry")
        logger.info("registry refreshed", extra={"features": 120})
    """

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        fields: dict[str, Any] = dict(self.extra or {})
        fields.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"extra_fields": fields}
        return msg, kwargs


_configured = False


def configure_logging(
    level: int | str | None = None,
    structured: bool | None = None,
) -> None:
    """Configure the root logger once per process.

    ``LOG_LEVEL`` and ``LOG_FORMAT`` (``json`` or ``text``) are read when the
    arguments are omitted.
    """
    global _configured
    if _configured:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if structured is None:
        structured = os.getenv("LOG_FORMAT", "json").strip().lower() != "text"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)
    _configured = True


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging` (tests)."""
    global _configured
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)
    _configured = False


def get_logger(name: str, **extra: Any) -> StructuredLogger:
    """Get a structured logger with optional default extra fields."""
    configure_logging()
    base_logger = logging.getLogger(name)
    return StructuredLogger(base_logger, extra)

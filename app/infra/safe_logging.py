"""Helpers for logging patient narrative without writing it to the logs."""

from __future__ import annotations

import hashlib
from typing import Iterable


def text_fingerprint(text: str | None) -> str:
    normalized = " ".join((text or "").split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def safe_log_text(text: str | None) -> str:
    """Render narrative as ``<sha256=... len=...>``; the raw text never appears."""
    normalized = " ".join((text or "").split())
    if not normalized:
        return "<empty>"
    return f"<sha256={text_fingerprint(normalized)} len={len(normalized)}>"


def safe_log_features(features: Iterable[str], limit: int = 20) -> str:
    """Feature ids are vocabulary, not patient data; cap the list length only."""
    items = list(features)
    shown = ",".join(items[:limit])
    if len(items) > limit:
        shown += f",...(+{len(items) - limit})"
    return shown


__all__ = ["safe_log_features", "safe_log_text", "text_fingerprint"]

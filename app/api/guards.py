from __future__ import annotations

from app.common.exceptions import InvalidRequest

SUPPORTED_WANT = "extract"
UNSUPPORTED_WANT_MESSAGE = "only 'extract' supported for now"


def enforce_extract_request(want: str | None) -> None:
    if want != SUPPORTED_WANT:
        raise InvalidRequest(UNSUPPORTED_WANT_MESSAGE)


__all__ = ["SUPPORTED_WANT", "UNSUPPORTED_WANT_MESSAGE", "enforce_extract_request"]

"""Exception hierarchy for the triage extraction service."""

from __future__ import annotations


class TriageError(Exception):
    """Base error for the triage backend."""

    pass


class SourceUnavailable(TriageError):
    """A registry source could not be fetched (network error or non-2xx)."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"[{source}] {reason}")


class MalformedSource(SourceUnavailable):
    """A registry source answered but its body is not usable JSON."""

    pass


class RemoteExtractorUnavailable(TriageError):
    """The language-model extractor is misconfigured, unreachable or answered badly."""

    pass


class InvalidRequest(TriageError):
    """The inbound request asked for something other than extraction."""

    pass

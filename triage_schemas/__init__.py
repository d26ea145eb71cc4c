from .extraction import Demographics, ExtractionResult, RemoteExtractPayload

__all__ = ["Demographics", "ExtractionResult", "RemoteExtractPayload"]

"""Combination of extractor outputs into the response payload."""

from .merge import allowed_features_from, merge_results

__all__ = ["allowed_features_from", "merge_results"]

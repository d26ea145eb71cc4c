"""Shared exceptions and console logging."""

__all__ = [
    "exceptions",
    "logger",
]

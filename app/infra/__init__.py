"""Infrastructure modules for the triage backend.

Low-level concerns kept out of the extraction code:
- Runtime settings (timeouts, concurrency, startup toggles)
- PHI-safe logging helpers
"""

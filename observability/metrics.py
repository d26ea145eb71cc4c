"""Metrics client abstraction and implementations.

This module provides:
- MetricsClient: Abstract base class for metrics emission
- NullMetricsClient: No-op implementation (default)
- StdoutMetricsClient: JSON lines on stderr for debugging
- RegistryMetricsClient: In-process counters/gauges/histograms with Prometheus
  text export (served by ``app/api/routes/metrics.py``)

The backend is picked from ``METRICS_BACKEND`` (``prometheus``/``registry``,
``stdout`` or ``null``).
"""

from __future__ import annotations

import json
import os
import sys
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

DEFAULT_PREFIX = "triage"

# Histogram buckets for timings, in milliseconds.
DEFAULT_TIMING_BUCKETS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000)


class MetricsClient(ABC):
    """Abstract base class for metrics emission."""

    @abstractmethod
    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter metric."""
        ...

    @abstractmethod
    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a gauge value."""
        ...

    @abstractmethod
    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing value in milliseconds."""
        ...


class NullMetricsClient(MetricsClient):
    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        pass

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        pass


class StdoutMetricsClient(MetricsClient):
    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self.prefix = prefix

    def _emit(self, metric_type: str, name: str, value: Any, tags: dict[str, str] | None) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": metric_type,
            "metric": f"{self.prefix}.{name}",
            "value": value,
            "tags": tags or {},
        }
        print(json.dumps(record), file=sys.stderr)

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        self._emit("counter", name, value, tags)

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._emit("gauge", name, value, tags)

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        self._emit("timing", name, value_ms, tags)


def _labels(tags: dict[str, str] | None) -> str:
    if not tags:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in sorted(tags.items())) + "}"


def _with_le(labels: str, bound: str) -> str:
    if labels:
        return labels[:-1] + f',le="{bound}"' + "}"
    return f'{{le="{bound}"}}'


def _metric_name(prefix: str, name: str) -> str:
    return f"{prefix}_{name.replace('.', '_').replace('-', '_')}"


@dataclass
class _Histogram:
    buckets: tuple[float, ...]
    counts: dict[float, int] = field(default_factory=lambda: defaultdict(int))
    total: float = 0.0
    count: int = 0

    def observe(self, value: float) -> None:
        self.total += value
        self.count += 1
        for bound in self.buckets:
            if value <= bound:
                self.counts[bound] += 1

    def as_dict(self) -> dict[str, float]:
        data: dict[str, float] = {f"le_{bound}": self.counts.get(bound, 0) for bound in self.buckets}
        data["_sum"] = self.total
        data["_count"] = self.count
        return data


class RegistryMetricsClient(MetricsClient):
    """In-process metrics registry with Prometheus text export.

    Usage:
        client = RegistryMetricsClient()
        client.incr("requests")
        client.timing("request_ms", 42.0, {"route": "triage"})
        text = client.export_prometheus()
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, buckets: tuple[float, ...] = DEFAULT_TIMING_BUCKETS):
        self.prefix = prefix
        self.buckets = buckets
        self._lock = threading.Lock()
        self._counters: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._gauges: dict[str, dict[str, float]] = defaultdict(dict)
        self._histograms: dict[str, dict[str, _Histogram]] = defaultdict(dict)

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        with self._lock:
            self._counters[name][_labels(tags)] += value

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self._gauges[name][_labels(tags)] = value

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        labels = _labels(tags)
        with self._lock:
            series = self._histograms[name]
            if labels not in series:
                series[labels] = _Histogram(self.buckets)
            series[labels].observe(value_ms)

    def counter_value(self, name: str, tags: dict[str, str] | None = None) -> float:
        with self._lock:
            return self._counters.get(name, {}).get(_labels(tags), 0.0)

    def export_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            for name, series in sorted(self._counters.items()):
                metric = _metric_name(self.prefix, name) + "_total"
                lines.append(f"# TYPE {metric} counter")
                lines.extend(f"{metric}{labels} {value}" for labels, value in sorted(series.items()))

            for name, series in sorted(self._gauges.items()):
                metric = _metric_name(self.prefix, name)
                lines.append(f"# TYPE {metric} gauge")
                lines.extend(f"{metric}{labels} {value}" for labels, value in sorted(series.items()))

            for name, series in sorted(self._histograms.items()):
                metric = _metric_name(self.prefix, name)
                lines.append(f"# TYPE {metric} histogram")
                for labels, hist in sorted(series.items()):
                    for bound in hist.buckets:
                        lines.append(f"{metric}_bucket{_with_le(labels, str(bound))} {hist.counts.get(bound, 0)}")
                    lines.append(f"{metric}_bucket{_with_le(labels, '+Inf')} {hist.count}")
                    lines.append(f"{metric}_sum{labels} {hist.total}")
                    lines.append(f"{metric}_count{labels} {hist.count}")
        return "\n".join(lines) + "\n"

    def export_json(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {name: dict(series) for name, series in self._counters.items()},
                "gauges": {name: dict(series) for name, series in self._gauges.items()},
                "histograms": {
                    name: {labels: hist.as_dict() for labels, hist in series.items()}
                    for name, series in self._histograms.items()
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()


_metrics_client: MetricsClient | None = None


def get_metrics_client() -> MetricsClient:
    """Get the global metrics client, initializing it from ``METRICS_BACKEND``."""
    global _metrics_client
    if _metrics_client is None:
        backend = os.getenv("METRICS_BACKEND", "null").strip().lower()
        if backend in ("registry", "prometheus"):
            _metrics_client = RegistryMetricsClient()
        elif backend == "stdout":
            _metrics_client = StdoutMetricsClient()
        else:
            _metrics_client = NullMetricsClient()
    return _metrics_client


def set_metrics_client(client: MetricsClient) -> None:
    global _metrics_client
    _metrics_client = client


def reset_metrics_client() -> None:
    """Drop the global client; the next lookup re-reads the environment."""
    global _metrics_client
    _metrics_client = None

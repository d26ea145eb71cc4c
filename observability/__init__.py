# Observability module
from .logging_config import configure_logging, get_logger
from .metrics import (
    MetricsClient,
    NullMetricsClient,
    RegistryMetricsClient,
    StdoutMetricsClient,
    get_metrics_client,
    set_metrics_client,
)
from .timing import TimingContext, timed

__all__ = [
    "MetricsClient",
    "NullMetricsClient",
    "RegistryMetricsClient",
    "StdoutMetricsClient",
    "get_metrics_client",
    "set_metrics_client",
    "configure_logging",
    "get_logger",
    "timed",
    "TimingContext",
]

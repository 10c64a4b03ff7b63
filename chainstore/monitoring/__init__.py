"""
Observability for the store layer: structured logging and Prometheus metrics.
"""

from .logging import StoreJsonFormatter, setup_logging_from_env, setup_store_logging
from .prometheus import StoreMetrics, start_metrics_server

__all__ = [
    "StoreJsonFormatter",
    "StoreMetrics",
    "setup_logging_from_env",
    "setup_store_logging",
    "start_metrics_server",
]

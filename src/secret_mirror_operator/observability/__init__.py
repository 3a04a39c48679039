"""
Observability utilities for the Secret Mirror operator.

This module provides metrics, tracing, and structured logging
capabilities for production monitoring and troubleshooting.
"""

from .logging import ReconcileLogger, setup_structured_logging
from .metrics import MetricsServer, get_metrics_registry, metrics_collector
from .tracing import setup_tracing, shutdown_tracing, traced_handler

__all__ = [
    "MetricsServer",
    "get_metrics_registry",
    "metrics_collector",
    "ReconcileLogger",
    "setup_structured_logging",
    "setup_tracing",
    "shutdown_tracing",
    "traced_handler",
]

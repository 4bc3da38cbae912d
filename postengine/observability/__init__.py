"""
Observability module - Logging, Metrics, and Tracing.
"""

from postengine.observability.logging import get_logger, log_context, setup_logging
from postengine.observability.metrics import metrics
from postengine.observability.tracing import setup_tracing, trace_operation

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
    "trace_operation",
]

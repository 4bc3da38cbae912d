"""
Metrics Collection with Prometheus.

Exposes business and system metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from postengine.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    ERROR_TYPE = "error_type"
    CALL = "call"
    OUTCOME = "outcome"


class PostEngineMetrics:
    """
    Centralized metrics for the caption API.

    Covers:
    - HTTP requests (rate, duration, errors)
    - Admission decisions (allow/deny by reason)
    - Model calls (rate, duration, outcome, fallbacks)
    - Credit debits (applied, conflict, failed)
    - Account store operations (query duration, success)
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info(
            "postengine_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "postengine_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "postengine_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0),
        )

        self.http_requests_in_progress = Gauge(
            "postengine_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Admission Metrics
        # ====================================================================
        self.admission_decisions_total = Counter(
            "postengine_admission_decisions_total",
            "Admission decisions by outcome",
            ["allow", "reason"],
        )

        # ====================================================================
        # Model Call Metrics
        # ====================================================================
        self.model_calls_total = Counter(
            "postengine_model_calls_total",
            "Model provider calls by call and outcome",
            [MetricLabels.CALL, MetricLabels.OUTCOME],
        )

        self.model_call_duration_seconds = Histogram(
            "postengine_model_call_duration_seconds",
            "Model provider call duration in seconds",
            [MetricLabels.CALL],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
        )

        self.fallbacks_total = Counter(
            "postengine_fallbacks_total",
            "Generation sub-results replaced by deterministic defaults",
            [MetricLabels.CALL],
        )

        # ====================================================================
        # Credit Metrics
        # ====================================================================
        self.debits_total = Counter(
            "postengine_debits_total",
            "Credit debits by outcome",
            [MetricLabels.OUTCOME],
        )

        self.accounts_created_total = Counter(
            "postengine_accounts_created_total",
            "Total visitor accounts created",
        )

        # ====================================================================
        # Store Metrics
        # ====================================================================
        self.db_queries_total = Counter(
            "postengine_db_queries_total",
            "Total account store operations",
            [MetricLabels.OPERATION, "success"],
        )

        self.db_query_duration_seconds = Histogram(
            "postengine_db_query_duration_seconds",
            "Account store operation duration in seconds",
            [MetricLabels.OPERATION],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0, 10.0),
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "postengine_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_admission(self, allow: bool, reason: str) -> None:
        """Record an admission decision."""
        self.admission_decisions_total.labels(allow=str(allow), reason=reason).inc()

    def record_model_call(self, call: str, outcome: str, duration: float) -> None:
        """Record one model provider call."""
        self.model_calls_total.labels(call=call, outcome=outcome).inc()
        self.model_call_duration_seconds.labels(call=call).observe(duration)

    def record_fallback(self, call: str) -> None:
        """Record a fallback substitution."""
        self.fallbacks_total.labels(call=call).inc()

    def record_debit(self, outcome: str) -> None:
        """Record a credit debit attempt."""
        self.debits_total.labels(outcome=outcome).inc()

    def record_db_query(self, operation: str, success: bool, duration: float) -> None:
        """Record database query metrics."""
        self.db_queries_total.labels(operation=operation, success=str(success)).inc()
        self.db_query_duration_seconds.labels(operation=operation).observe(duration)

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = PostEngineMetrics()

"""
Prometheus metrics module for TutorLink.

Service operations are recorded from the @measure_operation decorator; the
workflow-specific counters below are incremented by the services themselves.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "tutorlink_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "tutorlink_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "tutorlink_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Post-commit notification delivery
notifications_dispatched_total = Counter(
    "tutorlink_notifications_dispatched_total",
    "Notifications handed to the sink after commit, by terminal status",
    ["kind", "status"],
    registry=REGISTRY,
)

# Workflow outcomes
enrollments_total = Counter(
    "tutorlink_enrollments_total",
    "Enrollments created, by path",
    ["path"],
    registry=REGISTRY,
)

withdrawals_total = Counter(
    "tutorlink_withdrawals_total",
    "Completed withdrawals, by whether the class was cancelled",
    ["class_cancelled"],
    registry=REGISTRY,
)

schedule_conflicts_total = Counter(
    "tutorlink_schedule_conflicts_total",
    "Offers rejected because an equivalent class already covers the slot",
    registry=REGISTRY,
)

class_requests_expired_total = Counter(
    "tutorlink_class_requests_expired_total",
    "Class requests moved to expired by the periodic sweep",
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'EnrollmentService')
            operation: Operation/method name (e.g., 'assign_recurring_class')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_notification_outcome(kind: str, status: str) -> None:
        """Record terminal outcome of one post-commit notification."""
        notifications_dispatched_total.labels(kind=kind, status=status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_enrollment(path: str) -> None:
        """path: 'match' (request/application accepted) or 'purchase' (wallet debit)."""
        enrollments_total.labels(path=path).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_withdrawal(class_cancelled: bool) -> None:
        withdrawals_total.labels(class_cancelled="true" if class_cancelled else "false").inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_schedule_conflict() -> None:
        schedule_conflicts_total.inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_requests_expired(count: int) -> None:
        if count > 0:
            class_requests_expired_total.inc(count)
            PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics data in Prometheus text format."""
        with PrometheusMetrics._cache_lock:
            if PrometheusMetrics._cache_payload is None:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()

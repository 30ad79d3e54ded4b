"""Workflow counters exposed through the custom Prometheus registry."""

from tutorlink.monitoring.prometheus_metrics import REGISTRY, PrometheusMetrics


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_enrollment_counter_by_path():
    before = _sample("tutorlink_enrollments_total", {"path": "purchase"})

    PrometheusMetrics.inc_enrollment("purchase")

    assert _sample("tutorlink_enrollments_total", {"path": "purchase"}) == before + 1


def test_expired_counter_ignores_zero():
    before = _sample("tutorlink_class_requests_expired_total")

    PrometheusMetrics.inc_requests_expired(0)
    PrometheusMetrics.inc_requests_expired(3)

    assert _sample("tutorlink_class_requests_expired_total") == before + 3


def test_error_operations_count_error_type():
    labels = {"service": "SampleService", "operation": "op", "error_type": "NotFoundException"}
    before = _sample("tutorlink_errors_total", labels)

    PrometheusMetrics.record_service_operation(
        "SampleService", "op", 0.01, status="error", error_type="NotFoundException"
    )

    assert _sample("tutorlink_errors_total", labels) == before + 1


def test_scrape_payload_is_refreshed_after_increment():
    PrometheusMetrics.inc_withdrawal(True)
    first = PrometheusMetrics.get_metrics()
    assert b"tutorlink_withdrawals_total" in first

    PrometheusMetrics.inc_withdrawal(True)

    assert PrometheusMetrics.get_metrics() != first
    assert PrometheusMetrics.get_content_type().startswith("text/plain")

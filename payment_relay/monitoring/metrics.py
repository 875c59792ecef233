"""
Prometheus metrics for the payment relay.

Tracks:
- Webhook events by type and outcome
- Status writes by source and status
- Status store persistence failures
- Checkout sessions by type and outcome
- Number of payments currently tracked
"""
from prometheus_client import Counter, Gauge, Histogram

# Webhook metrics
webhook_events_received_total = Counter(
    "webhook_events_received_total",
    "Total webhook events received",
    ["event_type"],
)

webhook_events_processed_total = Counter(
    "webhook_events_processed_total",
    "Total webhook events processed",
    ["event_type", "outcome"],  # recorded, ignored, rejected
)

webhook_processing_duration_seconds = Histogram(
    "webhook_processing_duration_seconds",
    "Webhook processing duration in seconds",
    ["event_type"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# Status store metrics
status_writes_total = Counter(
    "status_writes_total",
    "Total payment status records written",
    ["source", "status"],  # source: webhook, manual
)

status_store_failures_total = Counter(
    "status_store_failures_total",
    "Total status store persistence failures",
    ["operation"],  # load, save
)

payments_tracked = Gauge(
    "payments_tracked",
    "Number of payments held in the status store",
)

# Checkout metrics
checkout_sessions_total = Counter(
    "checkout_sessions_total",
    "Total checkout session creation attempts",
    ["checkout_type", "outcome"],  # outcome: created, failed
)

stripe_api_duration_seconds = Histogram(
    "stripe_api_duration_seconds",
    "Stripe API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_webhook_event(event_type: str, outcome: str, duration_seconds: float) -> None:
        """Record webhook event processing."""
        webhook_events_received_total.labels(event_type=event_type).inc()
        webhook_events_processed_total.labels(event_type=event_type, outcome=outcome).inc()
        webhook_processing_duration_seconds.labels(event_type=event_type).observe(
            duration_seconds
        )

    @staticmethod
    def record_status_write(source: str, status: str) -> None:
        status_writes_total.labels(source=source, status=status).inc()

    @staticmethod
    def record_store_failure(operation: str) -> None:
        status_store_failures_total.labels(operation=operation).inc()

    @staticmethod
    def set_payments_tracked(count: int) -> None:
        payments_tracked.set(count)

    @staticmethod
    def record_checkout_session(
        checkout_type: str, outcome: str, duration_seconds: float
    ) -> None:
        """Record a Stripe checkout session call."""
        checkout_sessions_total.labels(checkout_type=checkout_type, outcome=outcome).inc()
        stripe_api_duration_seconds.labels(operation="create_checkout_session").observe(
            duration_seconds
        )


# Export singleton instance
metrics = MetricsCollector()

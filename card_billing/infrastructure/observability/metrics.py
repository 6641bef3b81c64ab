"""Prometheus metrics for monitoring statement closing, settlement and webhook performance"""

from prometheus_client import Counter, Histogram

# Billing cycle metrics
statements_closed_counter = Counter(
    "card_billing_statements_closed_total",
    "Statements created by the billing-cycle closer",
)

statement_close_failures_counter = Counter(
    "card_billing_statement_close_failures_total",
    "Cards whose statement closing raised an error",
)

billing_run_duration_histogram = Histogram(
    "card_billing_run_duration_seconds",
    "Duration of a billing-cycle closing run",
    ["result"],  # ok | with_errors
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0],
)

# Purchase and settlement metrics
installments_generated_counter = Counter(
    "card_billing_installments_generated_total",
    "Installments generated for new credit purchases",
)

statement_payments_counter = Counter(
    "card_billing_statement_payments_total",
    "Statement payment attempts",
    ["outcome"],  # paid | rejected
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_billing_run(statements_created: int, failures: int, duration_seconds: float) -> None:
    """Record metrics of a finished billing run"""
    if statements_created:
        statements_closed_counter.inc(statements_created)
    if failures:
        statement_close_failures_counter.inc(failures)

    result = "with_errors" if failures else "ok"
    billing_run_duration_histogram.labels(result=result).observe(duration_seconds)

"""Prometheus metrics for savings activity, store health, and identity provider calls"""

from prometheus_client import Counter, Histogram

# Transaction metrics
transaction_counter = Counter(
    "tabunganku_transaction_total",
    "Savings transactions attempted",
    ["type", "outcome"],  # setor | tarik ; completed | rejected | conflict | failed
)

transaction_amount_histogram = Histogram(
    "tabunganku_transaction_amount_rupiah",
    "Amounts of completed transactions",
    ["type"],
    buckets=[1_000, 5_000, 10_000, 20_000, 50_000, 100_000, 500_000, 1_000_000],
)

student_created_counter = Counter(
    "tabunganku_student_created_total",
    "Students added",
)

# Store metrics
store_failure_counter = Counter(
    "tabunganku_store_failures_total",
    "Failed database operations",
    ["operation"],
)

# Identity provider metrics
identity_latency_histogram = Histogram(
    "identity_provider_latency_seconds",
    "Identity provider response time",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

auth_failure_counter = Counter(
    "tabunganku_auth_failures_total",
    "Failed sign-in or sign-out attempts",
    ["reason"],  # invalid_credentials | provider_unavailable | no_session
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(transaction_type: str, outcome: str, amount: int | None = None) -> None:
    """Count a transaction attempt; amounts are only observed for completed ones"""
    transaction_counter.labels(type=transaction_type, outcome=outcome).inc()

    if outcome == "completed" and amount is not None:
        transaction_amount_histogram.labels(type=transaction_type).observe(amount)

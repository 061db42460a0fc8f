"""Prometheus metrics for monitoring card issuance, withdrawals, and downstream resilience"""

from prometheus_client import Counter, Histogram, Gauge

# Card metrics
debit_card_counter = Counter(
    "debit_card_operations_total",
    "Debit card mutations",
    ["operation"],  # created | account_associated
)

# Withdrawal metrics
withdrawal_counter = Counter(
    "debit_withdrawal_total",
    "Withdrawal requests by outcome",
    ["outcome"],  # completed | pending | insufficient_funds | rejected | unavailable
)

withdrawal_fallthrough_counter = Counter(
    "debit_withdrawal_fallthrough_total",
    "Withdrawals that moved on to the next associated account after insufficient funds",
)

withdrawal_accounts_histogram = Histogram(
    "debit_withdrawal_accounts_attempted",
    "Number of associated accounts tried per withdrawal",
    buckets=[1, 2, 3, 4, 5, 8, 13],
)

# Downstream resilience metrics
circuit_state_gauge = Gauge(
    "downstream_circuit_state",
    "Circuit breaker state per downstream (0=closed, 1=open, 2=half_open)",
    ["service"],
)

circuit_rejection_counter = Counter(
    "downstream_circuit_rejections_total",
    "Calls short-circuited to fallback while the circuit was open",
    ["service"],
)

downstream_failure_counter = Counter(
    "downstream_failures_total",
    "Infrastructure failures from downstream calls (after retries)",
    ["service"],
)

downstream_retry_counter = Counter(
    "downstream_retries_total",
    "Retried downstream call attempts",
    ["service"],
)

downstream_latency_histogram = Histogram(
    "downstream_call_latency_seconds",
    "Downstream call response time per attempt",
    ["service"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_circuit_state(service: str, state_value: int) -> None:
    """Publish the current breaker state for a downstream"""
    circuit_state_gauge.labels(service=service).set(state_value)


def record_withdrawal(outcome: str, accounts_attempted: int | None = None) -> None:
    """Record withdrawal outcome and how far down the account list it went"""
    withdrawal_counter.labels(outcome=outcome).inc()
    if accounts_attempted:
        withdrawal_accounts_histogram.observe(accounts_attempted)

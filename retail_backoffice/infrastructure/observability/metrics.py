"""Prometheus metrics for transaction outcomes, payment settlement and observer health"""

from prometheus_client import Counter, Histogram

# Transaction lifecycle
transaction_transitions_counter = Counter(
    "retail_transaction_transitions_total",
    "Transactions entering each status",
    ["status"],  # MASIHDIPROSES | SELESAI | DIBATALKAN
)

# Payments
installments_recorded_counter = Counter(
    "retail_installments_recorded_total",
    "Installments recorded against payments",
    ["method"],
)

payments_settled_counter = Counter(
    "retail_payments_settled_total",
    "Payments that reached LUNAS",
)

# Event dispatch
observer_failures_counter = Counter(
    "retail_observer_failures_total",
    "Observer deliveries that raised or exceeded their time budget",
    ["observer", "event"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transition(status_token: str) -> None:
    transaction_transitions_counter.labels(status=status_token).inc()


def record_installment(method_token: str, settled: bool) -> None:
    """Count an installment and, when it settled the payment, the settlement"""
    installments_recorded_counter.labels(method=method_token).inc()
    if settled:
        payments_settled_counter.inc()


def record_observer_failure(observer: object, event, error: BaseException) -> None:
    """EventDispatcher failure hook"""
    name = getattr(observer, "name", type(observer).__name__)
    observer_failures_counter.labels(observer=name, event=event.name).inc()

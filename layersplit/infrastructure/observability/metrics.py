"""Prometheus metrics for bill lifecycle, reconciliation health, and collaborator failures"""

from prometheus_client import Counter, Histogram

# Ledger lifecycle metrics
bill_created_counter = Counter(
    "layersplit_bills_created_total",
    "Bills created locally",
    ["split_kind"],  # EQUAL | CUSTOM
)

bill_confirmation_counter = Counter(
    "layersplit_bill_confirmations_total",
    "Bill confirmation callbacks",
    ["outcome"],  # confirmed | duplicate
)

payment_confirmed_counter = Counter(
    "layersplit_payments_confirmed_total",
    "Payment confirmations applied",
)

settlement_counter = Counter(
    "layersplit_settlements_total",
    "Entities that reached SETTLED",
    ["entity"],  # debt | bill
)

blocked_bill_counter = Counter(
    "layersplit_bills_blocked_total",
    "Bill transactions refused because participants have no linked wallet",
)

# Reconciliation health
reconciliation_mismatch_counter = Counter(
    "layersplit_reconciliation_mismatch_total",
    "Ledger events that did not match local state",
    ["reason"],
)

# Collaborators
notification_failure_counter = Counter(
    "layersplit_notification_failures_total",
    "Notices that could not be delivered",
)

ledger_query_failure_counter = Counter(
    "layersplit_ledger_query_failures_total",
    "Failed ledger gateway calls",
)

ledger_latency_histogram = Histogram(
    "layersplit_ledger_latency_seconds",
    "Ledger gateway response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_mismatch(reason: str) -> None:
    """Count a reconciliation mismatch by reason"""
    reconciliation_mismatch_counter.labels(reason=reason).inc()


def record_settlement(debt_settled: bool, bill_settled: bool) -> None:
    """Record settlement transitions produced by one payment confirmation"""
    if debt_settled:
        settlement_counter.labels(entity="debt").inc()
    if bill_settled:
        settlement_counter.labels(entity="bill").inc()

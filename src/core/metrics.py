"""Prometheus metrics for the CashHash ledger service.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- cashhash_reservations_total: Reservation attempts by outcome
- cashhash_invested_cents_total: Capital committed by investors
- cashhash_invoice_transitions_total: Lifecycle transitions by event
- cashhash_invoices_funded_total: Invoices reaching their funding goal
- cashhash_settlements_total: Payout records by kind
- cashhash_payout_cents_total: Amount made claimable by kind
- cashhash_platform_fee_cents_total: Platform fees collected
- cashhash_claims_total: Claims by outcome
- cashhash_risk_assessments_total: Risk assessments by grade

Technical Metrics (for Engineering/SRE):
- cashhash_cas_retries_total: Optimistic-concurrency retries
- cashhash_cas_exhausted_total: Writes that gave up after all retries
- cashhash_ledger_operation_latency_seconds: Ledger operation latency
- cashhash_settlement_latency_seconds: Settlement network latency
- cashhash_settlement_requests_total: Settlement network calls by status
- cashhash_settlement_failures_total: Settlement network failures
- cashhash_notification_total: Notification deliveries by status
- cashhash_reconciliation_pending: Unresolved reconciliation tasks
- cashhash_reconciliation_attempts_total: Reconciliation re-attempts
- cashhash_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, Gauge, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

reservations_total = Counter(
    "cashhash_reservations_total",
    "Total number of investment reservation attempts",
    ["outcome"],  # reserved, or the rejecting error code
)

invested_cents_total = Counter(
    "cashhash_invested_cents_total",
    "Total capital committed by investors in cents",
)

invoice_transitions_total = Counter(
    "cashhash_invoice_transitions_total",
    "Invoice lifecycle transitions",
    ["event"],
)

invoices_funded_total = Counter(
    "cashhash_invoices_funded_total",
    "Invoices that reached their funding goal",
)

settlements_total = Counter(
    "cashhash_settlements_total",
    "Payout records created",
    ["kind"],  # payment, default
)

payout_cents_total = Counter(
    "cashhash_payout_cents_total",
    "Amount made claimable to investors in cents",
    ["kind"],
)

platform_fee_cents_total = Counter(
    "cashhash_platform_fee_cents_total",
    "Platform fees collected in cents",
)

claims_total = Counter(
    "cashhash_claims_total",
    "Payout claims by outcome",
    ["outcome"],  # claimed, already_claimed, not_available
)

risk_assessments_total = Counter(
    "cashhash_risk_assessments_total",
    "Risk assessments by grade",
    ["grade"],
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

cas_retries = Counter(
    "cashhash_cas_retries_total",
    "Invoice compare-and-swap conflicts that were retried",
    ["operation"],
)

cas_exhausted = Counter(
    "cashhash_cas_exhausted_total",
    "Invoice writes abandoned after exhausting compare-and-swap retries",
    ["operation"],
)

ledger_operation_latency = Histogram(
    "cashhash_ledger_operation_latency_seconds",
    "Ledger operation latency in seconds",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

settlement_latency = Histogram(
    "cashhash_settlement_latency_seconds",
    "Settlement network call latency in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

settlement_requests_total = Counter(
    "cashhash_settlement_requests_total",
    "Settlement network calls",
    ["operation", "status"],  # success, failure
)

settlement_failures = Counter(
    "cashhash_settlement_failures_total",
    "Settlement network failures",
    ["operation", "error_type"],  # timeout, error
)

notification_total = Counter(
    "cashhash_notification_total",
    "Notification deliveries",
    ["status"],  # sent, failed
)

reconciliation_pending = Gauge(
    "cashhash_reconciliation_pending",
    "Current number of unresolved reconciliation tasks",
)

reconciliation_attempts = Counter(
    "cashhash_reconciliation_attempts_total",
    "Reconciliation re-attempts by result",
    ["result"],  # resolved, failed
)

http_requests_total = Counter(
    "cashhash_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "cashhash_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_reservation(outcome: str, amount_cents: int = 0) -> None:
    """Record a reservation attempt."""
    reservations_total.labels(outcome=outcome).inc()
    if outcome == "reserved":
        invested_cents_total.inc(amount_cents)


def record_transition(event: str) -> None:
    """Record a lifecycle transition."""
    invoice_transitions_total.labels(event=event).inc()
    if event == "complete_funding":
        invoices_funded_total.inc()


def record_settlement(kind: str, payout_cents: int, fee_cents: int) -> None:
    """Record a payout record being created."""
    settlements_total.labels(kind=kind).inc()
    payout_cents_total.labels(kind=kind).inc(payout_cents)
    if fee_cents:
        platform_fee_cents_total.inc(fee_cents)


def record_claim(outcome: str) -> None:
    """Record a claim attempt."""
    claims_total.labels(outcome=outcome).inc()


def record_risk_assessment(grade: str) -> None:
    """Record a risk assessment."""
    risk_assessments_total.labels(grade=grade).inc()


def record_cas_retry(operation: str) -> None:
    """Record a compare-and-swap conflict that will be retried."""
    cas_retries.labels(operation=operation).inc()


def record_cas_exhausted(operation: str) -> None:
    """Record a write abandoned after all retries."""
    cas_exhausted.labels(operation=operation).inc()


@contextmanager
def track_ledger_operation(operation: str) -> Generator[None, None, None]:
    """Context manager to track ledger operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        ledger_operation_latency.labels(operation=operation).observe(duration)


@contextmanager
def track_settlement_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track settlement network latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        settlement_latency.labels(operation=operation).observe(duration)


def record_settlement_success(operation: str) -> None:
    """Record a successful settlement network call."""
    settlement_requests_total.labels(operation=operation, status="success").inc()


def record_settlement_failure(operation: str, error_type: str) -> None:
    """Record a settlement network failure."""
    settlement_requests_total.labels(operation=operation, status="failure").inc()
    settlement_failures.labels(operation=operation, error_type=error_type).inc()


def record_notification(sent: bool) -> None:
    """Record a notification delivery outcome."""
    notification_total.labels(status="sent" if sent else "failed").inc()


def set_reconciliation_pending(count: int) -> None:
    """Update the reconciliation backlog gauge."""
    reconciliation_pending.set(count)


def record_reconciliation_attempt(resolved: bool) -> None:
    """Record a reconciliation re-attempt."""
    reconciliation_attempts.labels(result="resolved" if resolved else "failed").inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST

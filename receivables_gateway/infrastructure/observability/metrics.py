"""Prometheus metrics for risk bands, credit limits, reconciliation health and webhooks"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Analysis metrics
analysis_counter = Counter(
    "receivables_analysis_total",
    "Total receivables risk analyses run",
    ["risk_band"],  # Good | Average | Poor
)

credit_limit_bucket_counter = Counter(
    "receivables_credit_limit_bucket",
    "Recommended credit limits by bucket",
    ["bucket"],  # none, <=50k, 50k-250k, 250k-1M, 1M+
)

reconciliation_delta_counter = Counter(
    "receivables_reconciliation_delta_total",
    "Analyses whose ledger did not reconcile to the raw totals",
)

unapplied_prepayment_counter = Counter(
    "receivables_unapplied_prepayments_total",
    "Advances left unapplied after carry-forward",
)

# Normalizer metrics
normalizer_failures_counter = Counter(
    "normalizer_failures_total",
    "Failed ledger normalizer calls",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Report webhook response time",
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


def credit_limit_bucket(credit_limit: Optional[float]) -> str:
    if credit_limit is None or credit_limit <= 0:
        return "none"
    elif credit_limit <= 50_000:
        return "<=50k"
    elif credit_limit <= 250_000:
        return "50k-250k"
    elif credit_limit <= 1_000_000:
        return "250k-1M"
    else:
        return "1M+"


def record_analysis(risk_band: str, credit_limit: Optional[float], delta: float, unapplied_count: int) -> None:
    """Record analysis metrics for monitoring band distribution and reconciliation health"""
    analysis_counter.labels(risk_band=risk_band).inc()
    credit_limit_bucket_counter.labels(bucket=credit_limit_bucket(credit_limit)).inc()

    if delta != 0:
        reconciliation_delta_counter.inc()
    if unapplied_count:
        unapplied_prepayment_counter.inc(unapplied_count)

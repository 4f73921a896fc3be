"""Payment-behaviour metrics derived from a reconciled receivables ledger"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from receivables_gateway.domain.models import AgingBucket, Invoice, MonthlyTrendPoint, PaymentMetrics
from receivables_gateway.domain.policy import DEFAULT_POLICY, RiskPolicy
from receivables_gateway.domain.reconciliation import ReconciliationResult
from receivables_gateway.domain.terms import dominant_term
from receivables_gateway.utils.date_utils import days_between, month_start, months_between

AGING_LABELS = ("0-30", "31-60", "61-90", "91+")


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    return numerator / denominator if denominator > 0 else None


def settlement_date(invoice: Invoice) -> Optional[date]:
    """
    Date a paid invoice actually cleared.

    Latest clearing date across its allocations: maturity for deferred
    instruments (checks), handover date for everything else.
    """
    if not invoice.paid:
        return None
    if invoice.allocations:
        return max(a.settlement_date for a in invoice.allocations)
    return invoice.closing_date


def _check_metrics(invoices: Sequence[Invoice], policy: RiskPolicy) -> Dict[str, Optional[float]]:
    total_amount = 0.0
    lag_weighted = 0.0
    late_amount = 0.0
    maturity_amount = 0.0
    maturity_weighted = 0.0
    over_term = 0
    term_samples = 0

    for inv in invoices:
        for alloc in inv.check_allocations:
            lag = alloc.handover_lag_days
            total_amount += alloc.amount
            lag_weighted += lag * alloc.amount
            if lag > policy.handover_late_days:
                late_amount += alloc.amount

            if alloc.maturity_date is None:
                continue

            # Term compliance is judged from handover, not from the invoice
            deferral = days_between(alloc.payment_date, alloc.maturity_date)
            if deferral > 0:
                term_samples += 1
                expected = alloc.expected_term if alloc.expected_term is not None else policy.default_term
                if deferral > expected:
                    over_term += 1

            duration = days_between(alloc.invoice_date, alloc.maturity_date)
            if duration > 0:
                maturity_amount += alloc.amount
                maturity_weighted += duration * alloc.amount

    duration_avg = _ratio(maturity_weighted, maturity_amount)
    return {
        "avg_check_handover_lag": _ratio(lag_weighted, total_amount),
        "pct_checks_handed_over_late": _ratio(late_amount, total_amount),
        "check_maturity_duration": duration_avg,
        "check_maturity_overrun": None if duration_avg is None else duration_avg - policy.check_canonical_term,
        "pct_checks_over_term": _ratio(over_term, term_samples),
    }


def _settlement_metrics(paid: Sequence[Invoice]) -> Tuple[Optional[float], Optional[float]]:
    samples = []
    for inv in paid:
        cleared = settlement_date(inv)
        if cleared is not None:
            samples.append((days_between(inv.invoice_date, cleared), inv.term))
    if not samples:
        return None, None
    avg_days = sum(days for days, _ in samples) / len(samples)
    after_term = sum(1 for days, term in samples if days > term) / len(samples)
    return avg_days, after_term


def compute_metrics(
    result: ReconciliationResult,
    start_date: date,
    today: date,
    policy: RiskPolicy = DEFAULT_POLICY,
) -> PaymentMetrics:
    """
    Derive aggregate metrics from reconciled invoices.

    Day metrics are left unrounded; rounding is a presentation concern.
    Metrics whose denominator is empty come back as None.
    """
    invoices = result.real_invoices
    paid = [inv for inv in invoices if inv.paid and inv.closing_date is not None]
    unpaid = [inv for inv in invoices if inv.remaining > 0]

    ages = [(days_between(inv.invoice_date, today), inv) for inv in unpaid]
    total_remaining = sum(inv.remaining for inv in unpaid)
    age_weighted = sum(age * inv.remaining for age, inv in ages)
    overdue = [inv for age, inv in ages if age > policy.overdue_after_days]
    overdue_amount = sum(inv.remaining for inv in overdue)
    overdue_by_term = sum(inv.remaining for age, inv in ages if age > inv.term)

    blended = None
    if invoices:
        spans = [days_between(inv.invoice_date, inv.closing_date if inv.paid and inv.closing_date else today) for inv in invoices]
        blended = sum(spans) / len(invoices)

    total_invoiced = sum(inv.amount for inv in invoices)
    months = months_between(start_date, today, policy.days_per_month)
    avg_monthly_purchases = total_invoiced / months if months > 0 else None

    paid_after_term = None
    if paid:
        paid_after_term = sum(1 for inv in paid if days_between(inv.invoice_date, inv.closing_date) > inv.term) / len(paid)

    avg_days_to_settle, pct_settled_after_term = _settlement_metrics(paid)
    checks = _check_metrics(result.invoices, policy)

    return PaymentMetrics(
        avg_days_to_pay=_ratio(result.lag_weighted_sum, result.lag_weight),
        weighted_avg_age_unpaid=_ratio(age_weighted, total_remaining),
        overdue_rate=_ratio(len(overdue), len(unpaid)),
        overdue_amount_rate=_ratio(overdue_amount, total_remaining),
        blended_avg_days_to_pay=blended,
        avg_monthly_purchases=avg_monthly_purchases,
        total_invoiced=total_invoiced,
        avg_check_handover_lag=checks["avg_check_handover_lag"],
        pct_checks_handed_over_late=checks["pct_checks_handed_over_late"],
        check_maturity_duration=checks["check_maturity_duration"],
        check_maturity_overrun=checks["check_maturity_overrun"],
        pct_checks_over_term=checks["pct_checks_over_term"],
        avg_days_to_settle=avg_days_to_settle,
        pct_settled_after_term=pct_settled_after_term,
        pct_paid_after_term=paid_after_term,
        overdue_balance_by_term=overdue_by_term,
        dominant_term=dominant_term(result.payments, policy),
    )


def aging_buckets(invoices: Sequence[Invoice], today: date) -> List[AgingBucket]:
    """Unpaid remaining balance by age: 0-30, 31-60, 61-90, 91+ days"""
    amounts = [0.0, 0.0, 0.0, 0.0]
    for inv in invoices:
        if inv.kind.is_synthetic or inv.remaining <= 0:
            continue
        age = days_between(inv.invoice_date, today)
        if age <= 30:
            amounts[0] += inv.remaining
        elif age <= 60:
            amounts[1] += inv.remaining
        elif age <= 90:
            amounts[2] += inv.remaining
        else:
            amounts[3] += inv.remaining
    return [AgingBucket(label=label, amount=amount) for label, amount in zip(AGING_LABELS, amounts)]


def monthly_trend(invoices: Sequence[Invoice]) -> List[MonthlyTrendPoint]:
    """DSO-like trend: mean invoice->closing days per closing month"""
    by_month: Dict[date, List[int]] = {}
    for inv in invoices:
        if inv.kind.is_synthetic or not inv.paid or inv.closing_date is None:
            continue
        days = days_between(inv.invoice_date, inv.closing_date)
        # Negative spans are data errors
        if days < 0:
            continue
        by_month.setdefault(month_start(inv.closing_date), []).append(days)

    return [
        MonthlyTrendPoint(month=month, avg_days_to_pay=sum(days) / len(days), invoice_count=len(days))
        for month, days in sorted(by_month.items())
    ]

"""Engine entry points: reconcile, measure, score and assemble a risk report"""

import math
from datetime import date
from typing import List, Optional, Sequence, Union

from receivables_gateway.domain.ledger import assign_running_balances, build_ledger, summarize_reconciliation
from receivables_gateway.domain.metrics import aging_buckets, compute_metrics, monthly_trend
from receivables_gateway.domain.models import (
    AnalysisError,
    Invoice,
    MetricRow,
    NormalizedLedger,
    Payment,
    PaymentMetrics,
    RiskAssessment,
    RiskReport,
)
from receivables_gateway.domain.policy import DEFAULT_POLICY, RiskPolicy
from receivables_gateway.domain.reconciliation import reconcile
from receivables_gateway.domain.scoring import assess_lower_better, assess_risk

NO_DATED_ROWS = "no dated rows"


def _round_days(value: Optional[float]) -> Optional[float]:
    return None if value is None else float(round(value))


def build_metric_rows(metrics: PaymentMetrics, assessment: RiskAssessment, policy: RiskPolicy = DEFAULT_POLICY) -> List[MetricRow]:
    """
    Presentation rows in dashboard order.

    Day-based values are rounded to whole days here and nowhere earlier.
    Fractions stay in [0, 1].
    """
    p = policy

    def assessed(value, threshold):
        return assess_lower_better(value, threshold.good_max, threshold.avg_max)

    return [
        MetricRow("avg_days_to_pay", "Average Days to Pay (Handover)",
                  _round_days(metrics.avg_days_to_pay), assessed(metrics.avg_days_to_pay, p.avg_days_to_pay)),
        MetricRow("weighted_avg_age_unpaid", "Weighted Avg Age of Unpaid Invoices (Days)",
                  _round_days(metrics.weighted_avg_age_unpaid),
                  assessed(metrics.weighted_avg_age_unpaid, p.weighted_avg_age_unpaid)),
        MetricRow("overdue_rate", "% of Unpaid Invoices Overdue",
                  metrics.overdue_rate, assessed(metrics.overdue_rate, p.overdue_rate)),
        MetricRow("overdue_amount_rate", "% of Unpaid Balance Overdue",
                  metrics.overdue_amount_rate, assessed(metrics.overdue_amount_rate, p.overdue_rate)),
        MetricRow("blended_avg_days_to_pay", "Blended Average Days to Pay",
                  _round_days(metrics.blended_avg_days_to_pay),
                  assessed(metrics.blended_avg_days_to_pay, p.blended_avg_days_to_pay)),
        MetricRow("avg_monthly_purchases", "Average Monthly Purchases", metrics.avg_monthly_purchases),
        MetricRow("check_maturity_duration", "Average Check Maturity Duration (Invoice to Maturity)",
                  _round_days(metrics.check_maturity_duration)),
        MetricRow("check_maturity_overrun", "Avg Check Maturity Over Expected (Days)",
                  _round_days(metrics.check_maturity_overrun),
                  assessed(metrics.check_maturity_overrun, p.check_maturity_overrun)),
        MetricRow("pct_checks_over_term", "% of Checks Over Expected Term",
                  metrics.pct_checks_over_term, assessed(metrics.pct_checks_over_term, p.pct_checks_over_term)),
        MetricRow("avg_check_handover_lag", "Average Check Handover Lag (Days)",
                  _round_days(metrics.avg_check_handover_lag)),
        MetricRow("pct_checks_handed_over_late", "% of Checks Handed Over Late", metrics.pct_checks_handed_over_late),
        MetricRow("avg_days_to_settle", "Average Days to Settle (Settlement)", _round_days(metrics.avg_days_to_settle)),
        MetricRow("pct_settled_after_term", "% of Invoices Settled After Term (Settlement)",
                  metrics.pct_settled_after_term),
        MetricRow("pct_paid_after_term", "% of Payments Delivered After Term",
                  metrics.pct_paid_after_term, assessed(metrics.pct_paid_after_term, p.pct_paid_after_term)),
        MetricRow("risk_rating", "Customer Risk Rating", assessment.risk_band.value, assessment.risk_band),
        MetricRow("overdue_vs_credit_limit", "Overdue Balance as % of Credit Limit",
                  assessment.overdue_vs_credit_limit,
                  assessed(assessment.overdue_vs_credit_limit, p.overdue_vs_credit_limit)),
        MetricRow("credit_limit", "Credit Limit", assessment.credit_limit),
        MetricRow("available_credit", "Available Credit", assessment.available_credit),
    ]


def analyze(
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    start_date: date,
    beginning_balance: float = 0.0,
    today: Optional[date] = None,
    policy: RiskPolicy = DEFAULT_POLICY,
) -> RiskReport:
    """
    Run the full engine on normalized input.

    Pure function of its arguments: inputs are copied before allocation and
    nothing is kept between calls. Pass `today` to make results reproducible.
    """
    today = today or date.today()
    if beginning_balance is None or not math.isfinite(beginning_balance):
        beginning_balance = 0.0

    result = reconcile(invoices, payments, start_date, beginning_balance, policy)
    metrics = compute_metrics(result, start_date, today, policy)

    ledger = build_ledger(result.invoices, result.payments)
    reconciliation = summarize_reconciliation(beginning_balance, result.invoices, result.payments, ledger)
    assign_running_balances(result.invoices)

    assessment = assess_risk(metrics, reconciliation.computed_outstanding, policy)
    report_invoices = result.real_invoices

    return RiskReport(
        start_date=start_date,
        as_of=today,
        invoices=report_invoices,
        metrics=build_metric_rows(metrics, assessment, policy),
        aging_buckets=aging_buckets(report_invoices, today),
        monthly_trend=monthly_trend(report_invoices),
        ledger=ledger,
        reconciliation=reconciliation,
        figures=metrics,
        assessment=assessment,
        diagnostics=result.diagnostics,
    )


def run_analysis(
    ledger: NormalizedLedger,
    beginning_balance: float = 0.0,
    start_date: Optional[date] = None,
    today: Optional[date] = None,
    policy: RiskPolicy = DEFAULT_POLICY,
) -> Union[RiskReport, AnalysisError]:
    """
    Anchor the analysis period and run the engine.

    The period starts at the explicit start date, else the first transaction,
    else the first invoice. Without any dated row an AnalysisError value is
    returned instead of raising, so callers can render it uniformly.
    """
    anchor = start_date or ledger.first_transaction_date or ledger.first_invoice_date
    if anchor is None:
        return AnalysisError(error=NO_DATED_ROWS)
    return analyze(ledger.invoices, ledger.payments, anchor, beginning_balance, today, policy)

"""Risk scoring engine - composite score, risk band and credit limit"""

import math
from typing import Optional

from receivables_gateway.domain.models import PaymentMetrics, RiskAssessment, RiskBand
from receivables_gateway.domain.policy import DEFAULT_POLICY, RiskPolicy


def score_component(value: Optional[float], good_max: float, avg_max: float) -> Optional[float]:
    """
    Lower-is-better component score: 1 (good), 0.5 (average), 0 (poor).

    None means the metric had no data; it is excluded rather than penalized.
    """
    if value is None:
        return None
    if value <= good_max:
        return 1.0
    if value <= avg_max:
        return 0.5
    return 0.0


def assess_lower_better(value: Optional[float], good_max: float, avg_max: float) -> Optional[RiskBand]:
    """Band label for a single metric, using the same cut-offs as scoring"""
    component = score_component(value, good_max, avg_max)
    if component is None:
        return None
    if component == 1.0:
        return RiskBand.GOOD
    if component == 0.5:
        return RiskBand.AVERAGE
    return RiskBand.POOR


def calculate_risk_score(metrics: PaymentMetrics, policy: RiskPolicy = DEFAULT_POLICY) -> float:
    """
    Weighted composite score from 0.0 (highest risk) to 1.0 (lowest risk).

    Weights (see RiskPolicy): avg days to pay 20%, unpaid age 10%,
    overdue rate 10%, blended days to pay 20%, check maturity overrun 20%,
    checks over term 20%. Missing metrics drop out of both numerator and
    denominator. No available metric at all scores 0.
    """
    weighted_sum = 0.0
    weight_total = 0.0
    for name, threshold in policy.scored_metrics().items():
        component = score_component(getattr(metrics, name), threshold.good_max, threshold.avg_max)
        if component is None:
            continue
        weighted_sum += component * threshold.weight
        weight_total += threshold.weight

    return weighted_sum / weight_total if weight_total > 0 else 0.0


def determine_risk_band(score: float) -> RiskBand:
    """Score bands: <= 1/3 Poor, <= 2/3 Average, otherwise Good"""
    if score <= 1 / 3:
        return RiskBand.POOR
    elif score <= 2 / 3:
        return RiskBand.AVERAGE
    else:
        return RiskBand.GOOD


def round_up(amount: float, unit: float) -> float:
    """Round up to the next multiple of unit to avoid false precision"""
    if unit <= 0:
        return amount
    return math.ceil(amount / unit) * unit


def determine_credit_limit(
    avg_monthly_purchases: Optional[float],
    dominant_term: int,
    band: RiskBand,
    policy: RiskPolicy = DEFAULT_POLICY,
) -> tuple[float, Optional[float]]:
    """
    Recommended credit limit from average monthly purchases.

    Returns: (multiplier, credit_limit); the limit is None when purchases
    could not be measured.
    """
    multiplier = policy.multiplier_for(dominant_term, band)
    if avg_monthly_purchases is None or not math.isfinite(avg_monthly_purchases):
        return multiplier, None
    return multiplier, round_up(avg_monthly_purchases * multiplier, policy.credit_limit_rounding)


def assess_risk(metrics: PaymentMetrics, open_balance: float, policy: RiskPolicy = DEFAULT_POLICY) -> RiskAssessment:
    """Main scoring entry point: score, band, credit limit and available credit"""
    score = calculate_risk_score(metrics, policy)
    band = determine_risk_band(score)
    multiplier, credit_limit = determine_credit_limit(metrics.avg_monthly_purchases, metrics.dominant_term, band, policy)

    available_credit = None
    overdue_vs_limit = None
    if credit_limit is not None:
        available_credit = max(0.0, credit_limit - open_balance)
        if credit_limit > 0:
            overdue_vs_limit = metrics.overdue_balance_by_term / credit_limit

    return RiskAssessment(
        score=score,
        risk_band=band,
        credit_multiplier=multiplier,
        credit_limit=credit_limit,
        available_credit=available_credit,
        open_balance=open_balance,
        overdue_vs_credit_limit=overdue_vs_limit,
    )

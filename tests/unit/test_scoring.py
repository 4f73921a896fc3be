"""Unit tests for risk scoring logic"""

import pytest
from dataclasses import replace
from receivables_gateway.domain.models import PaymentMetrics, RiskBand
from receivables_gateway.domain.policy import RiskPolicy
from receivables_gateway.domain.scoring import (
    assess_lower_better,
    assess_risk,
    calculate_risk_score,
    determine_credit_limit,
    determine_risk_band,
    round_up,
    score_component,
)


def make_metrics(**overrides) -> PaymentMetrics:
    """Metrics with every scored component in the good band"""
    values = dict(
        avg_days_to_pay=10.0,
        weighted_avg_age_unpaid=5.0,
        overdue_rate=0.0,
        overdue_amount_rate=0.0,
        blended_avg_days_to_pay=10.0,
        avg_monthly_purchases=10000.0,
        total_invoiced=30000.0,
        avg_check_handover_lag=None,
        pct_checks_handed_over_late=None,
        check_maturity_duration=None,
        check_maturity_overrun=-5.0,
        pct_checks_over_term=0.0,
        avg_days_to_settle=None,
        pct_settled_after_term=None,
        pct_paid_after_term=0.0,
        overdue_balance_by_term=0.0,
        dominant_term=30,
    )
    values.update(overrides)
    return PaymentMetrics(**values)


def test_score_component_thresholds():
    """Boundaries are inclusive on the better side"""
    assert score_component(20, 20, 40) == 1.0
    assert score_component(20.5, 20, 40) == 0.5
    assert score_component(40, 20, 40) == 0.5
    assert score_component(41, 20, 40) == 0.0
    assert score_component(None, 20, 40) is None


def test_assess_lower_better_labels():
    assert assess_lower_better(60, 20, 40) is RiskBand.POOR
    assert assess_lower_better(30, 20, 40) is RiskBand.AVERAGE
    assert assess_lower_better(5, 20, 40) is RiskBand.GOOD
    assert assess_lower_better(None, 20, 40) is None


def test_calculate_risk_score_all_good():
    assert calculate_risk_score(make_metrics()) == 1.0


def test_calculate_risk_score_missing_metrics_excluded():
    """Absent components drop out of the weight total instead of counting as poor"""
    metrics = make_metrics(
        avg_days_to_pay=60.0,
        check_maturity_overrun=None,
        pct_checks_over_term=None,
    )

    # Available weights: 0.2 (poor) + 0.1 + 0.1 + 0.2 (all good)
    assert calculate_risk_score(metrics) == pytest.approx(0.4 / 0.6)


def test_calculate_risk_score_no_data():
    metrics = make_metrics(
        avg_days_to_pay=None,
        weighted_avg_age_unpaid=None,
        overdue_rate=None,
        blended_avg_days_to_pay=None,
        check_maturity_overrun=None,
        pct_checks_over_term=None,
    )
    assert calculate_risk_score(metrics) == 0.0


def test_score_monotonic_in_each_metric():
    """Making any scored metric worse never raises the score"""
    base = make_metrics()
    worse = {
        "avg_days_to_pay": [10.0, 30.0, 60.0],
        "weighted_avg_age_unpaid": [5.0, 15.0, 25.0],
        "overdue_rate": [0.0, 0.2, 0.5],
        "blended_avg_days_to_pay": [10.0, 30.0, 70.0],
        "check_maturity_overrun": [-5.0, 10.0, 45.0],
        "pct_checks_over_term": [0.0, 0.5, 0.9],
    }
    for name, values in worse.items():
        scores = [calculate_risk_score(replace(base, **{name: v})) for v in values]
        assert scores == sorted(scores, reverse=True), name


def test_determine_risk_band():
    assert determine_risk_band(0.0) is RiskBand.POOR
    assert determine_risk_band(1 / 3) is RiskBand.POOR
    assert determine_risk_band(0.5) is RiskBand.AVERAGE
    assert determine_risk_band(2 / 3) is RiskBand.AVERAGE
    assert determine_risk_band(0.7) is RiskBand.GOOD
    assert determine_risk_band(1.0) is RiskBand.GOOD


def test_round_up():
    assert round_up(12_345, 10_000) == 20_000
    assert round_up(20_000, 10_000) == 20_000
    assert round_up(0, 10_000) == 0
    assert round_up(123.4, 0) == 123.4


def test_determine_credit_limit_long_term():
    multiplier, limit = determine_credit_limit(10_000, 90, RiskBand.GOOD)
    assert multiplier == 3.5
    assert limit == 40_000


def test_determine_credit_limit_short_term():
    multiplier, limit = determine_credit_limit(10_000, 30, RiskBand.POOR)
    assert multiplier == 1.0
    assert limit == 10_000

    multiplier, limit = determine_credit_limit(10_000, 60, RiskBand.AVERAGE)
    assert multiplier == 1.75
    assert limit == 20_000


def test_determine_credit_limit_unknown_purchases():
    multiplier, limit = determine_credit_limit(None, 30, RiskBand.GOOD)
    assert multiplier == 2.0
    assert limit is None


def test_custom_policy_rounding():
    policy = RiskPolicy(credit_limit_rounding=1_000)
    _, limit = determine_credit_limit(10_100, 30, RiskBand.GOOD, policy)
    assert limit == 21_000


def test_assess_risk_available_credit():
    assessment = assess_risk(make_metrics(overdue_balance_by_term=4_000.0), open_balance=5_000.0)

    assert assessment.risk_band is RiskBand.GOOD
    assert assessment.credit_limit == 20_000
    assert assessment.available_credit == 15_000
    assert assessment.overdue_vs_credit_limit == pytest.approx(0.2)


def test_assess_risk_available_credit_never_negative():
    assessment = assess_risk(make_metrics(), open_balance=50_000.0)
    assert assessment.available_credit == 0.0


def test_assess_risk_without_purchases():
    assessment = assess_risk(make_metrics(avg_monthly_purchases=None), open_balance=100.0)
    assert assessment.credit_limit is None
    assert assessment.available_credit is None
    assert assessment.overdue_vs_credit_limit is None

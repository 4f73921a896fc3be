"""Business policy constants for scoring and credit limits

Thresholds, weights and multipliers are policy choices rather than facts, so
they live here as overridable values instead of inline literals.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from receivables_gateway.domain.models import RiskBand


@dataclass(frozen=True)
class MetricThreshold:
    """Lower-is-better scoring band for one metric"""

    good_max: float
    avg_max: float
    weight: float


def _long_term_multipliers() -> Dict[RiskBand, float]:
    return {RiskBand.GOOD: 3.5, RiskBand.AVERAGE: 3.25, RiskBand.POOR: 3.0}


def _short_term_multipliers() -> Dict[RiskBand, float]:
    return {RiskBand.GOOD: 2.0, RiskBand.AVERAGE: 1.75, RiskBand.POOR: 1.0}


@dataclass(frozen=True)
class RiskPolicy:
    """
    Scoring table and credit policy.

    Scored metrics (good<= / avg<= / weight):
    - avg days to pay (handover):   20 / 40 / 0.20
    - weighted avg age of unpaid:   10 / 20 / 0.10
    - overdue rate:               0.10 / 0.30 / 0.10
    - blended avg days to pay:      15 / 50 / 0.20
    - check maturity overrun:        0 / 30 / 0.20
    - % checks over term:         0.30 / 0.60 / 0.20

    Credit limit = avg monthly purchases x multiplier, where the multiplier
    depends on whether the dominant instrument term is the long (90 day) term
    and on the risk band, rounded up to `credit_limit_rounding`.
    """

    avg_days_to_pay: MetricThreshold = MetricThreshold(20, 40, 0.20)
    weighted_avg_age_unpaid: MetricThreshold = MetricThreshold(10, 20, 0.10)
    overdue_rate: MetricThreshold = MetricThreshold(0.10, 0.30, 0.10)
    blended_avg_days_to_pay: MetricThreshold = MetricThreshold(15, 50, 0.20)
    check_maturity_overrun: MetricThreshold = MetricThreshold(0, 30, 0.20)
    pct_checks_over_term: MetricThreshold = MetricThreshold(0.30, 0.60, 0.20)

    # Assessment-only bands (not part of the composite score)
    pct_paid_after_term: MetricThreshold = MetricThreshold(0.30, 0.60, 0.0)
    overdue_vs_credit_limit: MetricThreshold = MetricThreshold(0.30, 0.60, 0.0)

    long_term_days: int = 90
    long_term_multipliers: Dict[RiskBand, float] = field(default_factory=_long_term_multipliers)
    short_term_multipliers: Dict[RiskBand, float] = field(default_factory=_short_term_multipliers)
    credit_limit_rounding: float = 10_000

    default_term: int = 30
    term_choices: Tuple[int, ...] = (30, 60, 90)
    check_canonical_term: int = 90
    overdue_after_days: int = 30
    handover_late_days: int = 30
    days_per_month: float = 30.44

    def scored_metrics(self) -> Dict[str, MetricThreshold]:
        """Metric name -> threshold for every component of the composite score"""
        return {
            "avg_days_to_pay": self.avg_days_to_pay,
            "weighted_avg_age_unpaid": self.weighted_avg_age_unpaid,
            "overdue_rate": self.overdue_rate,
            "blended_avg_days_to_pay": self.blended_avg_days_to_pay,
            "check_maturity_overrun": self.check_maturity_overrun,
            "pct_checks_over_term": self.pct_checks_over_term,
        }

    def multiplier_for(self, dominant_term: int, band: RiskBand) -> float:
        table = self.long_term_multipliers if dominant_term == self.long_term_days else self.short_term_multipliers
        return table[band]


DEFAULT_POLICY = RiskPolicy()

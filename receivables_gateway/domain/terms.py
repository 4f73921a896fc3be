"""Payment term inference"""

from typing import Dict, Iterable, List, Optional, Sequence

from receivables_gateway.domain.models import Payment
from receivables_gateway.domain.policy import DEFAULT_POLICY, RiskPolicy
from receivables_gateway.utils.date_utils import days_between


def mode(values: Iterable[Optional[int]], default: int) -> int:
    """
    Most frequent value, ignoring None.

    Ties go to the value whose first occurrence comes earliest.
    """
    counts: Dict[int, int] = {}
    for value in values:
        if value is None:
            continue
        counts[value] = counts.get(value, 0) + 1
    if not counts:
        return default
    # dicts keep insertion order, so max() keeps the earliest-seen among ties
    return max(counts, key=counts.get)


def snap_term(days: int, choices: Sequence[int] = (30, 60, 90)) -> int:
    """Snap a day distance to the nearest standard term (first choice wins ties)"""
    return min(choices, key=lambda choice: abs(days - choice))


def maturity_distances(payments: Iterable[Payment]) -> List[int]:
    """Positive handover->maturity distances of deferred payments"""
    distances = []
    for payment in payments:
        if payment.maturity_date is None:
            continue
        distance = days_between(payment.payment_date, payment.maturity_date)
        if distance > 0:
            distances.append(distance)
    return distances


def infer_global_term(payments: Sequence[Payment], policy: RiskPolicy = DEFAULT_POLICY) -> int:
    """
    Infer the default invoice term for a customer.

    1. Mode of the payments' expected terms, when any are known
    2. Otherwise the mode of maturity distances snapped to 30/60/90
    3. Otherwise the policy default (30)
    """
    expected = [p.expected_term for p in payments if p.expected_term is not None]
    if expected:
        return mode(expected, policy.default_term)

    snapped = [snap_term(d, policy.term_choices) for d in maturity_distances(payments)]
    return mode(snapped, policy.default_term)


def dominant_term(payments: Sequence[Payment], policy: RiskPolicy = DEFAULT_POLICY) -> int:
    """Most common expected term among payments that carry a future maturity"""
    samples = []
    for payment in payments:
        if payment.maturity_date is None:
            continue
        if days_between(payment.payment_date, payment.maturity_date) <= 0:
            continue
        samples.append(payment.expected_term if payment.expected_term is not None else policy.default_term)
    return mode(samples, policy.default_term)

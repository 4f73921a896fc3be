"""Unit tests for payment term inference"""

from datetime import date, timedelta
from receivables_gateway.domain.models import InstrumentType, Payment
from receivables_gateway.domain.terms import dominant_term, infer_global_term, maturity_distances, mode, snap_term

BASE = date(2024, 1, 1)


def day(n: int) -> date:
    return BASE + timedelta(days=n)


def test_mode_most_frequent():
    assert mode([30, 90, 90, 60], default=30) == 90


def test_mode_tie_goes_to_earliest_first_occurrence():
    assert mode([60, 90, 90, 60], default=30) == 60
    assert mode([90, 60], default=30) == 90


def test_mode_ignores_none_and_defaults():
    assert mode([None, 60, None], default=30) == 60
    assert mode([None, None], default=30) == 30
    assert mode([], default=45) == 45


def test_snap_term():
    assert snap_term(28) == 30
    assert snap_term(58) == 60
    assert snap_term(120) == 90
    # Equidistant from 30 and 60: the shorter term wins
    assert snap_term(45) == 30


def test_maturity_distances_positive_only():
    payments = [
        Payment(payment_date=day(0), amount=1.0, maturity_date=day(62)),
        Payment(payment_date=day(10), amount=1.0, maturity_date=day(10)),
        Payment(payment_date=day(10), amount=1.0),
    ]
    assert maturity_distances(payments) == [62]


def test_infer_global_term_prefers_expected_terms():
    payments = [
        Payment(payment_date=day(0), amount=1.0, expected_term=60, maturity_date=day(90)),
        Payment(payment_date=day(1), amount=1.0, expected_term=60),
        Payment(payment_date=day(2), amount=1.0, expected_term=30),
    ]
    assert infer_global_term(payments) == 60


def test_infer_global_term_from_maturities():
    payments = [
        Payment(payment_date=day(0), amount=1.0, maturity_date=day(88)),
        Payment(payment_date=day(5), amount=1.0, maturity_date=day(100)),
        Payment(payment_date=day(5), amount=1.0, maturity_date=day(40)),
    ]
    assert infer_global_term(payments) == 90


def test_infer_global_term_default():
    assert infer_global_term([Payment(payment_date=day(0), amount=1.0)]) == 30


def test_dominant_term_uses_future_maturities_only():
    payments = [
        Payment(payment_date=day(0), amount=1.0, instrument_type=InstrumentType.CHECK,
                maturity_date=day(90), expected_term=90),
        Payment(payment_date=day(1), amount=1.0, instrument_type=InstrumentType.CHECK,
                maturity_date=day(95), expected_term=90),
        Payment(payment_date=day(2), amount=1.0, instrument_type=InstrumentType.CASH, expected_term=30),
        Payment(payment_date=day(3), amount=1.0, instrument_type=InstrumentType.CASH, expected_term=30),
        Payment(payment_date=day(4), amount=1.0, instrument_type=InstrumentType.CASH, expected_term=30),
    ]
    assert dominant_term(payments) == 90


def test_dominant_term_defaults_without_maturities():
    assert dominant_term([Payment(payment_date=day(0), amount=1.0, expected_term=90)]) == 30

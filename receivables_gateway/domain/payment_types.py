"""Free-text payment type classification

Bookkeeping exports describe payments in Turkish, English or Arabic, often in
a free-text memo. Each instrument type is scored by keyword hits and the best
guess is returned together with a confidence, so an unrecognised description
becomes an explicit Unknown rather than an empty string.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern

from receivables_gateway.domain.models import InstrumentType

KEYWORDS: Dict[InstrumentType, Pattern[str]] = {
    InstrumentType.CHECK: re.compile(r"(cek|çek|cheque|check|senet|vadeli|بولصة|شيك)"),
    InstrumentType.CARD: re.compile(r"(\bkk\b|k\.k\.|kredi\s*kart|credit\s*card|card|kart|visa|master|بطاقة|فيزا|كردت)"),
    InstrumentType.CASH: re.compile(r"(peşin|pesin|cash|nakit|نقد|نقدي|كاش)"),
}

EXPECTED_TERMS: Dict[InstrumentType, Optional[int]] = {
    InstrumentType.CHECK: 90,
    InstrumentType.CARD: 30,
    InstrumentType.CASH: 30,
    InstrumentType.UNKNOWN: None,
}

# Classification order when two types score equally
PRIORITY = (InstrumentType.CHECK, InstrumentType.CARD, InstrumentType.CASH)


@dataclass(frozen=True)
class PaymentTypeGuess:
    instrument_type: InstrumentType
    expected_term: Optional[int]
    confidence: float


UNKNOWN_GUESS = PaymentTypeGuess(InstrumentType.UNKNOWN, None, 0.0)


def classify_payment_type(text: Optional[str]) -> PaymentTypeGuess:
    """
    Best-guess instrument type for a payment description.

    Confidence is the winning type's share of all keyword hits, so a memo that
    mentions both a check and cash scores lower than one naming a check alone.
    """
    normalized = (text or "").strip().lower()
    if not normalized:
        return UNKNOWN_GUESS

    hits = {kind: len(KEYWORDS[kind].findall(normalized)) for kind in PRIORITY}
    total = sum(hits.values())
    if total == 0:
        return UNKNOWN_GUESS

    best = max(PRIORITY, key=lambda kind: hits[kind])
    return PaymentTypeGuess(best, EXPECTED_TERMS[best], hits[best] / total)

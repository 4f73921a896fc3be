"""Domain models - pure Python dataclasses representing receivables entities"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional, Union


class InvoiceKind(str, Enum):
    """Closed set of receivable line kinds"""

    INVOICE = "Invoice"
    OPENING = "Opening"
    PREPAYMENT = "Prepayment"

    @property
    def is_synthetic(self) -> bool:
        return self is not InvoiceKind.INVOICE


class InstrumentType(str, Enum):
    """Settlement instrument of a payment"""

    CHECK = "Check"
    CARD = "Card"
    CASH = "Cash"
    UNKNOWN = "Unknown"

    @property
    def is_deferred(self) -> bool:
        """Deferred instruments clear at maturity, not at handover"""
        return self is InstrumentType.CHECK


class RiskBand(str, Enum):
    GOOD = "Good"
    AVERAGE = "Average"
    POOR = "Poor"


@dataclass(frozen=True)
class Payment:
    """Receipt produced by the ledger normalizer; never mutated"""

    payment_date: date
    amount: float
    maturity_date: Optional[date] = None
    instrument_type: InstrumentType = InstrumentType.UNKNOWN
    expected_term: Optional[int] = None
    description: str = ""


@dataclass
class AppliedAllocation:
    """One (payment, invoice) match recorded on the invoice it settled"""

    amount: float
    invoice_date: date
    payment_date: date
    maturity_date: Optional[date]
    instrument_type: InstrumentType
    expected_term: Optional[int] = None
    from_advance: bool = False

    @property
    def handover_lag_days(self) -> int:
        return max(0, (self.payment_date - self.invoice_date).days)

    @property
    def settlement_date(self) -> date:
        """Date the money actually cleared for this allocation"""
        if self.instrument_type.is_deferred and self.maturity_date is not None:
            cleared = self.maturity_date
        else:
            cleared = self.payment_date
        # Pre-funded debt settles no earlier than the invoice itself
        return max(cleared, self.invoice_date)


@dataclass
class Invoice:
    """Receivable line item"""

    invoice_date: date
    amount: float
    invoice_num: str = ""
    kind: InvoiceKind = InvoiceKind.INVOICE
    remaining: Optional[float] = None
    term: int = 30
    paid: bool = False
    closing_date: Optional[date] = None
    running_balance: Optional[float] = None
    allocations: List[AppliedAllocation] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.remaining is None:
            self.remaining = self.amount

    @property
    def check_allocations(self) -> List[AppliedAllocation]:
        return [a for a in self.allocations if a.instrument_type.is_deferred]

    @property
    def due_date(self) -> date:
        return self.invoice_date + timedelta(days=self.term)

    @property
    def days_to_pay(self) -> Optional[int]:
        if not self.paid or self.closing_date is None:
            return None
        days = (self.closing_date - self.invoice_date).days
        return days if days >= 0 else None

    @property
    def days_after_due(self) -> Optional[int]:
        days = self.days_to_pay
        return None if days is None else days - self.term


@dataclass
class Advance:
    """Payment amount received before, or in excess of, any matchable invoice"""

    date: date
    amount: float
    remaining: float
    instrument_type: InstrumentType = InstrumentType.UNKNOWN
    maturity_date: Optional[date] = None
    expected_term: Optional[int] = None


@dataclass
class UnappliedReceipt:
    """Payment that could not be fully matched on receipt"""

    date: date
    amount: float
    remaining: float
    reason: str  # "before_first_invoice" or "overpayment_or_future_invoice"


@dataclass
class LedgerEntry:
    date: date
    kind: str  # InvoiceKind value or "Payment"
    description: str
    ref: str
    debit: float
    credit: float
    balance: float


@dataclass
class ReconciliationSummary:
    beginning_balance: float
    sum_invoices: float
    sum_payments: float
    expected_outstanding: float
    computed_outstanding: float
    delta: float


@dataclass
class AgingBucket:
    label: str
    amount: float


@dataclass
class MonthlyTrendPoint:
    month: date
    avg_days_to_pay: float
    invoice_count: int


@dataclass
class MetricRow:
    """Presentation row for a single metric"""

    key: str
    label: str
    value: Union[float, str, None]
    assessment: Optional[RiskBand] = None


@dataclass
class PaymentMetrics:
    """Aggregate payment-behaviour statistics; None marks an empty denominator"""

    avg_days_to_pay: Optional[float]
    weighted_avg_age_unpaid: Optional[float]
    overdue_rate: Optional[float]
    overdue_amount_rate: Optional[float]
    blended_avg_days_to_pay: Optional[float]
    avg_monthly_purchases: Optional[float]
    total_invoiced: float
    avg_check_handover_lag: Optional[float]
    pct_checks_handed_over_late: Optional[float]
    check_maturity_duration: Optional[float]
    check_maturity_overrun: Optional[float]
    pct_checks_over_term: Optional[float]
    avg_days_to_settle: Optional[float]
    pct_settled_after_term: Optional[float]
    pct_paid_after_term: Optional[float]
    overdue_balance_by_term: float
    dominant_term: int


@dataclass
class RiskAssessment:
    score: float
    risk_band: RiskBand
    credit_multiplier: float
    credit_limit: Optional[float]
    available_credit: Optional[float]
    open_balance: float
    overdue_vs_credit_limit: Optional[float]


@dataclass
class Diagnostics:
    """Per-invocation record of anomalies absorbed during analysis"""

    global_term: int = 30
    invoice_term_counts: Dict[int, int] = field(default_factory=dict)
    instrument_counts: Dict[str, int] = field(default_factory=dict)
    check_counts: Dict[str, int] = field(default_factory=dict)
    unapplied: List[UnappliedReceipt] = field(default_factory=list)
    unapplied_after_carry: List[Advance] = field(default_factory=list)
    skipped_invoices: int = 0
    skipped_payments: int = 0


@dataclass
class RiskReport:
    """Single output of the reconciliation and risk engine"""

    start_date: date
    as_of: date
    invoices: List[Invoice]
    metrics: List[MetricRow]
    aging_buckets: List[AgingBucket]
    monthly_trend: List[MonthlyTrendPoint]
    ledger: List[LedgerEntry]
    reconciliation: ReconciliationSummary
    figures: PaymentMetrics
    assessment: RiskAssessment
    diagnostics: Diagnostics


@dataclass
class NormalizedLedger:
    """Output contract of the ledger normalizer"""

    invoices: List[Invoice]
    payments: List[Payment]
    first_invoice_date: Optional[date] = None
    first_transaction_date: Optional[date] = None


@dataclass
class AnalysisError:
    """Structured, non-raised failure of an analysis run"""

    error: str = "no dated rows"

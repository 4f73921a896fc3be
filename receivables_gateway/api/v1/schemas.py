"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import Any, Dict, List, Optional, Union

from receivables_gateway.domain.models import InstrumentType, InvoiceKind, RiskBand


class InvoiceIn(BaseModel):
    """Normalized invoice candidate"""

    invoice_date: date
    invoice_num: str = ""
    amount: float = Field(..., gt=0, description="Invoiced amount")


class PaymentIn(BaseModel):
    """Normalized payment candidate; type is classified from description when omitted"""

    payment_date: date
    amount: float = Field(..., gt=0, description="Amount received")
    maturity_date: Optional[date] = None
    instrument_type: Optional[InstrumentType] = None
    expected_term: Optional[int] = Field(None, gt=0, description="Expected term in days")
    description: str = ""


class AnalysisRequest(BaseModel):
    """Request body for POST /v1/analysis"""

    customer_key: str = Field(..., min_length=1, description="Customer identifier")
    beginning_balance: float = 0.0
    start_date: Optional[date] = Field(None, description="Period start; defaults to the first dated row")
    as_of: Optional[date] = Field(None, description="Evaluation date; defaults to today")
    invoices: List[InvoiceIn] = Field(default_factory=list)
    payments: List[PaymentIn] = Field(default_factory=list)


class ImportRequest(BaseModel):
    """Request body for POST /v1/analysis/import"""

    customer_key: str = Field(..., min_length=1, description="Customer identifier")
    beginning_balance: float = 0.0
    start_date: Optional[date] = None
    as_of: Optional[date] = None
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Raw export rows keyed by header")


class ORMSchema(BaseModel):
    """Base for schemas read straight off domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


class AllocationSchema(ORMSchema):
    amount: float
    invoice_date: date
    payment_date: date
    maturity_date: Optional[date] = None
    instrument_type: InstrumentType
    expected_term: Optional[int] = None
    from_advance: bool = False


class InvoiceSchema(ORMSchema):
    invoice_date: date
    invoice_num: str
    kind: InvoiceKind
    amount: float
    remaining: float
    term: int
    paid: bool
    closing_date: Optional[date] = None
    due_date: date
    days_to_pay: Optional[int] = None
    days_after_due: Optional[int] = None
    running_balance: Optional[float] = None
    allocations: List[AllocationSchema] = Field(default_factory=list)


class MetricRowSchema(ORMSchema):
    key: str
    label: str
    value: Union[float, str, None] = None
    assessment: Optional[RiskBand] = None


class AgingBucketSchema(ORMSchema):
    label: str
    amount: float


class MonthlyTrendSchema(ORMSchema):
    month: date
    avg_days_to_pay: float
    invoice_count: int


class LedgerEntrySchema(ORMSchema):
    date: date
    kind: str
    description: str
    ref: str
    debit: float
    credit: float
    balance: float


class ReconciliationSchema(ORMSchema):
    beginning_balance: float
    sum_invoices: float
    sum_payments: float
    expected_outstanding: float
    computed_outstanding: float
    delta: float


class PaymentMetricsSchema(ORMSchema):
    avg_days_to_pay: Optional[float] = None
    weighted_avg_age_unpaid: Optional[float] = None
    overdue_rate: Optional[float] = None
    overdue_amount_rate: Optional[float] = None
    blended_avg_days_to_pay: Optional[float] = None
    avg_monthly_purchases: Optional[float] = None
    total_invoiced: float
    avg_check_handover_lag: Optional[float] = None
    pct_checks_handed_over_late: Optional[float] = None
    check_maturity_duration: Optional[float] = None
    check_maturity_overrun: Optional[float] = None
    pct_checks_over_term: Optional[float] = None
    avg_days_to_settle: Optional[float] = None
    pct_settled_after_term: Optional[float] = None
    pct_paid_after_term: Optional[float] = None
    overdue_balance_by_term: float
    dominant_term: int


class RiskAssessmentSchema(ORMSchema):
    score: float
    risk_band: RiskBand
    credit_multiplier: float
    credit_limit: Optional[float] = None
    available_credit: Optional[float] = None
    open_balance: float
    overdue_vs_credit_limit: Optional[float] = None


class UnappliedReceiptSchema(ORMSchema):
    date: date
    amount: float
    remaining: float
    reason: str


class AdvanceSchema(ORMSchema):
    date: date
    amount: float
    remaining: float
    instrument_type: InstrumentType
    maturity_date: Optional[date] = None
    expected_term: Optional[int] = None


class DiagnosticsSchema(ORMSchema):
    global_term: int
    invoice_term_counts: Dict[int, int]
    instrument_counts: Dict[str, int]
    check_counts: Dict[str, int]
    unapplied: List[UnappliedReceiptSchema]
    unapplied_after_carry: List[AdvanceSchema]
    skipped_invoices: int
    skipped_payments: int


class RiskReportSchema(ORMSchema):
    """Full report; also the JSON document persisted for each analysis"""

    start_date: date
    as_of: date
    invoices: List[InvoiceSchema]
    metrics: List[MetricRowSchema]
    aging_buckets: List[AgingBucketSchema]
    monthly_trend: List[MonthlyTrendSchema]
    ledger: List[LedgerEntrySchema]
    reconciliation: ReconciliationSchema
    figures: PaymentMetricsSchema
    assessment: RiskAssessmentSchema
    diagnostics: DiagnosticsSchema


class AnalysisResponse(BaseModel):
    """Response for POST /v1/analysis and /v1/analysis/import"""

    report_id: str
    customer_key: str
    risk_band: RiskBand
    score: float
    credit_limit: Optional[float] = None
    available_credit: Optional[float] = None
    report: RiskReportSchema


class AnalysisErrorResponse(BaseModel):
    """Structured, non-exceptional analysis failure"""

    error: str


class StoredReportResponse(BaseModel):
    """Response for GET /v1/reports/{report_id} and /v1/reports/latest"""

    report_id: str
    customer_key: str
    created_at: str
    report: RiskReportSchema


class HistoryItem(BaseModel):
    """Single report in history"""

    report_id: str
    start_date: date
    as_of: date
    risk_band: RiskBand
    score: float
    credit_limit: Optional[float] = None
    reconciliation_delta: float
    created_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/reports/history"""

    customer_key: str
    reports: List[HistoryItem]

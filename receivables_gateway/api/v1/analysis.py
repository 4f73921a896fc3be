"""POST /v1/analysis - receivables reconciliation and credit risk endpoint"""

import time
import logging
from datetime import date
from typing import Optional, Union
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from receivables_gateway.api.v1.schemas import (
    AnalysisErrorResponse,
    AnalysisRequest,
    AnalysisResponse,
    ImportRequest,
    PaymentIn,
    RiskReportSchema,
)
from receivables_gateway.api.dependencies import (
    get_normalizer_client,
    get_request_id,
    get_risk_policy,
    get_webhook_client,
)
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.infrastructure.database.repositories import ReportRepository
from receivables_gateway.infrastructure.clients.normalizer import NormalizerClient
from receivables_gateway.infrastructure.clients.webhook import ReportWebhookClient
from receivables_gateway.domain.analysis import run_analysis
from receivables_gateway.domain.exceptions import NormalizerAPIError
from receivables_gateway.domain.models import AnalysisError, InstrumentType, Invoice, NormalizedLedger, Payment
from receivables_gateway.domain.payment_types import classify_payment_type
from receivables_gateway.domain.policy import RiskPolicy
from receivables_gateway.infrastructure.observability.metrics import normalizer_failures_counter, record_analysis
from receivables_gateway.infrastructure.observability.logging import log_analysis, log_reconciliation_warnings

router = APIRouter()


def to_payment(payment: PaymentIn) -> Payment:
    """Domain payment; unknown instrument types are classified from the description"""
    instrument_type = payment.instrument_type
    expected_term = payment.expected_term
    if instrument_type is None or instrument_type is InstrumentType.UNKNOWN:
        guess = classify_payment_type(payment.description)
        instrument_type = guess.instrument_type
        if expected_term is None:
            expected_term = guess.expected_term

    return Payment(
        payment_date=payment.payment_date,
        amount=payment.amount,
        maturity_date=payment.maturity_date,
        instrument_type=instrument_type,
        expected_term=expected_term,
        description=payment.description,
    )


def to_normalized_ledger(request_body: AnalysisRequest) -> NormalizedLedger:
    invoices = [
        Invoice(invoice_date=inv.invoice_date, invoice_num=inv.invoice_num, amount=inv.amount)
        for inv in request_body.invoices
    ]
    payments = [to_payment(p) for p in request_body.payments]

    invoice_dates = [inv.invoice_date for inv in invoices]
    all_dates = invoice_dates + [p.payment_date for p in payments]
    return NormalizedLedger(
        invoices=invoices,
        payments=payments,
        first_invoice_date=min(invoice_dates) if invoice_dates else None,
        first_transaction_date=min(all_dates) if all_dates else None,
    )


def _complete_analysis(
    customer_key: str,
    ledger: NormalizedLedger,
    beginning_balance: float,
    start_date: Optional[date],
    as_of: Optional[date],
    request_id: str,
    background_tasks: BackgroundTasks,
    db: Session,
    webhook_client: ReportWebhookClient,
    policy: RiskPolicy,
) -> Union[AnalysisResponse, JSONResponse]:
    """
    Shared analysis flow:
    1. Run the reconciliation and risk engine
    2. Persist the dated report document
    3. Schedule the report-ready webhook
    4. Record metrics and logs
    """
    start_time = time.time()

    outcome = run_analysis(ledger, beginning_balance, start_date=start_date, today=as_of, policy=policy)
    if isinstance(outcome, AnalysisError):
        logging.warning(f"Analysis not run: {outcome.error}", extra={"request_id": request_id})
        return JSONResponse(status_code=422, content=AnalysisErrorResponse(error=outcome.error).model_dump())

    report_schema = RiskReportSchema.model_validate(outcome)
    payload = report_schema.model_dump(mode="json")

    try:
        record = ReportRepository(db).create_report(customer_key, outcome, payload)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to store report: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    report_id = str(record.id)
    assessment = outcome.assessment
    background_tasks.add_task(
        webhook_client.send_report_event,
        {
            "event": "RISK_REPORT_READY",
            "report_id": report_id,
            "customer_key": record.customer_key,
            "risk_band": assessment.risk_band.value,
            "credit_limit": assessment.credit_limit,
            "as_of": outcome.as_of.isoformat(),
        },
    )

    duration_ms = (time.time() - start_time) * 1000
    unapplied = outcome.diagnostics.unapplied_after_carry
    log_reconciliation_warnings(
        request_id,
        record.customer_key,
        outcome.reconciliation.delta,
        sum(adv.remaining for adv in unapplied),
    )
    record_analysis(
        assessment.risk_band.value,
        assessment.credit_limit,
        outcome.reconciliation.delta,
        len(unapplied),
    )
    log_analysis(
        request_id,
        record.customer_key,
        assessment.risk_band.value,
        assessment.credit_limit,
        outcome.reconciliation.delta,
        duration_ms,
    )

    return AnalysisResponse(
        report_id=report_id,
        customer_key=record.customer_key,
        risk_band=assessment.risk_band,
        score=assessment.score,
        credit_limit=assessment.credit_limit,
        available_credit=assessment.available_credit,
        report=report_schema,
    )


@router.post(
    "/analysis",
    response_model=AnalysisResponse,
    responses={422: {"model": AnalysisErrorResponse}},
)
def create_analysis(
    request_body: AnalysisRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    webhook_client: ReportWebhookClient = Depends(get_webhook_client),
    policy: RiskPolicy = Depends(get_risk_policy),
):
    """
    Reconcile normalized invoices and payments and assess credit risk.

    Returns the full report; a ledger with no dated rows yields
    422 {"error": "no dated rows"}.
    """
    return _complete_analysis(
        request_body.customer_key,
        to_normalized_ledger(request_body),
        request_body.beginning_balance,
        request_body.start_date,
        request_body.as_of,
        get_request_id(request),
        background_tasks,
        db,
        webhook_client,
        policy,
    )


@router.post(
    "/analysis/import",
    response_model=AnalysisResponse,
    responses={422: {"model": AnalysisErrorResponse}},
)
async def import_and_analyze(
    request_body: ImportRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    normalizer: NormalizerClient = Depends(get_normalizer_client),
    webhook_client: ReportWebhookClient = Depends(get_webhook_client),
    policy: RiskPolicy = Depends(get_risk_policy),
):
    """
    Normalize a raw spreadsheet export, then analyze it.

    Flow:
    1. Send raw rows to the ledger normalizer
    2. Run the shared analysis flow on its output
    """
    request_id = get_request_id(request)
    try:
        ledger = await normalizer.normalize(request_body.rows)
    except NormalizerAPIError as e:
        normalizer_failures_counter.inc()
        logging.error(f"Normalizer error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Normalizer service unavailable")

    return _complete_analysis(
        request_body.customer_key,
        ledger,
        request_body.beginning_balance,
        request_body.start_date,
        request_body.as_of,
        request_id,
        background_tasks,
        db,
        webhook_client,
        policy,
    )

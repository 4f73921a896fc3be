"""GET /v1/reports/history and /v1/reports/latest - per-customer report lookups"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from receivables_gateway.api.v1.reports import to_stored_report
from receivables_gateway.api.v1.schemas import HistoryItem, HistoryResponse, StoredReportResponse
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.infrastructure.database.repositories import ReportRepository, normalize_customer_key

router = APIRouter()


@router.get("/reports/history", response_model=HistoryResponse)
def get_report_history(
    customer_key: str = Query(..., min_length=1, description="Customer identifier"),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Retrieve recent report summaries for a customer, newest first.
    """
    records = ReportRepository(db).get_reports_by_customer(customer_key, limit=limit)

    items = [
        HistoryItem(
            report_id=str(r.id),
            start_date=r.start_date,
            as_of=r.as_of,
            risk_band=r.risk_band,
            score=r.score_numeric,
            credit_limit=r.credit_limit,
            reconciliation_delta=r.reconciliation_delta,
            created_at=r.created_at.isoformat(),
        )
        for r in records
    ]

    return HistoryResponse(customer_key=normalize_customer_key(customer_key), reports=items)


@router.get("/reports/latest", response_model=StoredReportResponse)
def get_latest_report(
    customer_key: str = Query(..., min_length=1, description="Customer identifier"),
    db: Session = Depends(get_db),
):
    """Most recent report for a customer"""
    record = ReportRepository(db).get_latest_report(customer_key)
    if not record:
        raise HTTPException(status_code=404, detail="Report not found")
    return to_stored_report(record)

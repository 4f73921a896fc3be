"""GET /v1/reports/{report_id} - Fetch a stored risk report"""

import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from receivables_gateway.api.v1.schemas import RiskReportSchema, StoredReportResponse
from receivables_gateway.infrastructure.database.models import RiskReportRecord
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.infrastructure.database.repositories import ReportRepository

router = APIRouter()


def to_stored_report(record: RiskReportRecord) -> StoredReportResponse:
    """Rehydrate the persisted JSON document; dates parse back to date objects"""
    return StoredReportResponse(
        report_id=str(record.id),
        customer_key=record.customer_key,
        created_at=record.created_at.isoformat(),
        report=RiskReportSchema.model_validate(record.payload),
    )


@router.get("/reports/{report_id}", response_model=StoredReportResponse)
def get_report(report_id: str, db: Session = Depends(get_db)):
    """
    Retrieve a stored report by ID.

    Returns:
        The report exactly as produced at analysis time
    """
    try:
        report_uuid = uuid.UUID(report_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid report ID format")

    record = ReportRepository(db).get_report_by_id(report_uuid)
    if not record:
        raise HTTPException(status_code=404, detail="Report not found")

    return to_stored_report(record)

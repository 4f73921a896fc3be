"""Data access layer for stored risk reports"""

import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from receivables_gateway.infrastructure.database.models import RiskReportRecord
from receivables_gateway.domain.models import RiskReport


def normalize_customer_key(customer_key: str) -> str:
    """Reports are keyed case-insensitively on the trimmed customer key"""
    return customer_key.strip().upper()


class ReportRepository:
    """Repository for risk reports"""

    def __init__(self, db: Session):
        self.db = db

    def create_report(
        self,
        customer_key: str,
        report: RiskReport,
        payload: Dict[str, Any],
    ) -> RiskReportRecord:
        """Persist a report snapshot; payload is the JSON-ready report body"""
        record = RiskReportRecord(
            customer_key=normalize_customer_key(customer_key),
            start_date=report.start_date,
            as_of=report.as_of,
            beginning_balance=report.reconciliation.beginning_balance,
            score_numeric=report.assessment.score,
            risk_band=report.assessment.risk_band.value,
            credit_limit=report.assessment.credit_limit,
            reconciliation_delta=report.reconciliation.delta,
            payload=payload,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get_report_by_id(self, report_id: uuid.UUID) -> Optional[RiskReportRecord]:
        return (
            self.db.query(RiskReportRecord)
            .filter(RiskReportRecord.id == report_id)
            .first()
        )

    def get_reports_by_customer(self, customer_key: str, limit: int = 10) -> List[RiskReportRecord]:
        """Fetch recent reports for a customer, newest first"""
        return (
            self.db.query(RiskReportRecord)
            .filter(RiskReportRecord.customer_key == normalize_customer_key(customer_key))
            .order_by(RiskReportRecord.created_at.desc(), RiskReportRecord.as_of.desc())
            .limit(limit)
            .all()
        )

    def get_latest_report(self, customer_key: str) -> Optional[RiskReportRecord]:
        reports = self.get_reports_by_customer(customer_key, limit=1)
        return reports[0] if reports else None

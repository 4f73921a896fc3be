"""SQLAlchemy ORM models for stored risk reports"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Float, DateTime, Date, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskReportRecord(Base):
    """Dated snapshot of one receivables risk analysis"""

    __tablename__ = "risk_report"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_key = Column(Text, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    as_of = Column(Date, nullable=False)
    beginning_balance = Column(Float, nullable=False, default=0.0)
    score_numeric = Column(Float, nullable=False)
    risk_band = Column(Text, nullable=False)
    credit_limit = Column(Float, nullable=True)
    reconciliation_delta = Column(Float, nullable=False, default=0.0)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())

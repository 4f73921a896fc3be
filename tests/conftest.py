"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from receivables_gateway.api.main import create_app
from receivables_gateway.infrastructure.database.models import Base
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.domain.models import InstrumentType, Invoice, Payment


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_DATE = date(2024, 1, 1)


def day(n: int) -> date:
    """Calendar date n days after the fixture base date"""
    return BASE_DATE + timedelta(days=n)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def sample_invoices() -> list[Invoice]:
    """Four invoices over ten weeks"""
    return [
        Invoice(invoice_date=day(0), amount=1000.0, invoice_num="INV-1"),
        Invoice(invoice_date=day(20), amount=2000.0, invoice_num="INV-2"),
        Invoice(invoice_date=day(40), amount=1500.0, invoice_num="INV-3"),
        Invoice(invoice_date=day(70), amount=800.0, invoice_num="INV-4"),
    ]


@pytest.fixture
def sample_payments() -> list[Payment]:
    """Cash, a post-dated check and a card payment"""
    return [
        Payment(
            payment_date=day(15),
            amount=1000.0,
            instrument_type=InstrumentType.CASH,
            expected_term=30,
            description="Nakit tahsilat",
        ),
        Payment(
            payment_date=day(50),
            amount=2000.0,
            maturity_date=day(140),
            instrument_type=InstrumentType.CHECK,
            expected_term=90,
            description="Çek",
        ),
        Payment(
            payment_date=day(80),
            amount=500.0,
            instrument_type=InstrumentType.CARD,
            expected_term=30,
            description="Kredi kartı",
        ),
    ]

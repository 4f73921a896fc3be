"""Ledger normalizer HTTP client: raw spreadsheet rows in, clean invoices/payments out"""

import httpx
from datetime import date
from typing import Any, Dict, List, Optional
from receivables_gateway.domain.models import InstrumentType, Invoice, NormalizedLedger, Payment
from receivables_gateway.domain.exceptions import InvalidLedgerDataError, NormalizerAPIError
from receivables_gateway.config import settings


def _optional_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def parse_normalized_ledger(data: Dict[str, Any]) -> NormalizedLedger:
    """
    Build domain objects from the normalizer's output contract.

    Raises:
        InvalidLedgerDataError: On a missing field, bad date or unknown instrument type
    """
    try:
        invoices = [
            Invoice(
                invoice_date=date.fromisoformat(inv["invoice_date"]),
                invoice_num=inv.get("invoice_num") or "",
                amount=float(inv["amount"]),
            )
            for inv in data.get("invoices", [])
        ]
        payments = [
            Payment(
                payment_date=date.fromisoformat(p["payment_date"]),
                amount=float(p["amount"]),
                maturity_date=_optional_date(p.get("maturity_date")),
                instrument_type=InstrumentType(p.get("instrument_type") or InstrumentType.UNKNOWN.value),
                expected_term=p.get("expected_term"),
                description=p.get("description") or "",
            )
            for p in data.get("payments", [])
        ]
        return NormalizedLedger(
            invoices=invoices,
            payments=payments,
            first_invoice_date=_optional_date(data.get("first_invoice_date")),
            first_transaction_date=_optional_date(data.get("first_transaction_date")),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise InvalidLedgerDataError(f"Malformed normalized ledger: {e}") from e


class NormalizerClient:
    """Client for the external ledger normalization service"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.normalizer_api_base
        self.timeout = timeout or settings.http_timeout_seconds

    async def normalize(self, rows: List[Dict[str, Any]]) -> NormalizedLedger:
        """
        Send raw export rows for header detection, number/date parsing and
        payment-type classification.

        Raises:
            NormalizerAPIError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/normalize",
                    json={"rows": rows},
                )
                response.raise_for_status()
                return parse_normalized_ledger(response.json())

            except httpx.TimeoutException as e:
                raise NormalizerAPIError(f"Normalizer timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise NormalizerAPIError(f"Normalizer error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise NormalizerAPIError(f"Normalizer unreachable: {e}") from e
            except (InvalidLedgerDataError, ValueError) as e:
                raise NormalizerAPIError(f"Invalid ledger data from normalizer: {e}") from e

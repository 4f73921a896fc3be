"""Unit tests for outbound HTTP clients and policy wiring"""

import asyncio
import httpx
import pytest
from datetime import date
from unittest.mock import AsyncMock, patch
from receivables_gateway.api.dependencies import build_risk_policy
from receivables_gateway.config import Settings
from receivables_gateway.domain.exceptions import InvalidLedgerDataError, NormalizerAPIError
from receivables_gateway.domain.models import InstrumentType, RiskBand
from receivables_gateway.infrastructure.clients.normalizer import NormalizerClient, parse_normalized_ledger
from receivables_gateway.infrastructure.clients.webhook import ReportWebhookClient

NORMALIZED = {
    "invoices": [{"invoice_date": "2024-01-01", "invoice_num": "F-1", "amount": 1200.5}],
    "payments": [
        {
            "payment_date": "2024-01-20",
            "amount": 600,
            "maturity_date": "2024-04-19",
            "instrument_type": "Check",
            "expected_term": 90,
            "description": "Çek",
        },
        {"payment_date": "2024-01-25", "amount": 100},
    ],
    "first_invoice_date": "2024-01-01",
    "first_transaction_date": "2024-01-01",
}


def response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", "http://test"), **kwargs)


def test_parse_normalized_ledger():
    ledger = parse_normalized_ledger(NORMALIZED)

    assert ledger.invoices[0].invoice_date == date(2024, 1, 1)
    assert ledger.invoices[0].remaining == 1200.5
    assert ledger.payments[0].instrument_type is InstrumentType.CHECK
    assert ledger.payments[0].maturity_date == date(2024, 4, 19)
    assert ledger.payments[1].instrument_type is InstrumentType.UNKNOWN
    assert ledger.payments[1].maturity_date is None
    assert ledger.first_transaction_date == date(2024, 1, 1)


def test_parse_normalized_ledger_rejects_bad_rows():
    with pytest.raises(InvalidLedgerDataError):
        parse_normalized_ledger({"invoices": [{"invoice_date": "01.01.2024", "amount": 1}]})
    with pytest.raises(InvalidLedgerDataError):
        parse_normalized_ledger({"payments": [{"payment_date": "2024-01-01", "amount": 1, "instrument_type": "Wire"}]})


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_normalizer_client_success(mock_post: AsyncMock):
    mock_post.return_value = response(200, json=NORMALIZED)

    ledger = asyncio.run(NormalizerClient(base_url="http://normalizer").normalize([{"a": 1}]))

    assert len(ledger.invoices) == 1
    assert mock_post.call_args.args[0] == "http://normalizer/normalize"
    assert mock_post.call_args.kwargs["json"] == {"rows": [{"a": 1}]}


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_normalizer_client_http_error(mock_post: AsyncMock):
    mock_post.return_value = response(500)

    with pytest.raises(NormalizerAPIError):
        asyncio.run(NormalizerClient(base_url="http://normalizer").normalize([]))


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_normalizer_client_invalid_payload(mock_post: AsyncMock):
    mock_post.return_value = response(200, json={"invoices": [{"amount": 1}]})

    with pytest.raises(NormalizerAPIError):
        asyncio.run(NormalizerClient(base_url="http://normalizer").normalize([]))


@patch("receivables_gateway.infrastructure.clients.webhook.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_webhook_retries_then_succeeds(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.side_effect = [httpx.ConnectError("down"), response(503), response(200)]

    asyncio.run(ReportWebhookClient(webhook_url="http://export").send_report_event({"event": "RISK_REPORT_READY"}))

    assert mock_post.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]


@patch("receivables_gateway.infrastructure.clients.webhook.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_webhook_gives_up_after_max_retries(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.side_effect = httpx.ConnectError("down")
    client = ReportWebhookClient(webhook_url="http://export", max_retries=3)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(client.send_report_event({"event": "RISK_REPORT_READY"}))

    assert mock_post.call_count == client.max_retries


def test_build_risk_policy_from_settings():
    config = Settings(
        long_term_multipliers={"Good": 4.0, "Average": 3.0, "Poor": 2.0},
        credit_limit_rounding=5_000,
        default_term_days=45,
    )

    policy = build_risk_policy(config)

    assert policy.long_term_multipliers[RiskBand.GOOD] == 4.0
    assert policy.multiplier_for(90, RiskBand.POOR) == 2.0
    assert policy.credit_limit_rounding == 5_000
    assert policy.default_term == 45


@patch("receivables_gateway.infrastructure.clients.webhook.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
def test_webhook_does_not_retry_client_errors(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.return_value = response(404)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(ReportWebhookClient(webhook_url="http://export").send_report_event({"event": "RISK_REPORT_READY"}))

    assert mock_post.call_count == 1
    mock_sleep.assert_not_called()

"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

# Chatty client libraries log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping each record with UTC time, level and service name"""

    def __init__(self, *args, service_name: str = "receivables-gateway", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "receivables-gateway") -> None:
    """Route all records through one JSON handler on stdout"""
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ServiceJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service_name=service_name))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_analysis(
    request_id: str,
    customer_key: str,
    risk_band: str,
    credit_limit: Optional[float],
    reconciliation_delta: float,
    duration_ms: float,
) -> None:
    """One record per completed analysis, for band and reconciliation review"""
    logging.info(
        "Analysis completed",
        extra={
            "request_id": request_id,
            "customer_key": customer_key,
            "step": "analysis_complete",
            "risk_band": risk_band,
            "credit_limit": credit_limit,
            "reconciliation_delta": reconciliation_delta,
            "duration_ms": round(duration_ms, 2),
        },
    )


def log_reconciliation_warnings(request_id: str, customer_key: str, delta: float, unapplied_total: float) -> None:
    """Flag ledgers that did not reconcile or left payments unapplied; neither fails the request"""
    if delta != 0:
        logging.warning(
            "Reconciliation delta is non-zero",
            extra={"request_id": request_id, "customer_key": customer_key, "step": "reconciliation", "delta": delta},
        )
    if unapplied_total > 0:
        logging.warning(
            "Unapplied prepayments remain after carry-forward",
            extra={
                "request_id": request_id,
                "customer_key": customer_key,
                "step": "reconciliation",
                "unapplied_total": unapplied_total,
            },
        )

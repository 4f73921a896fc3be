"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from receivables_gateway.config import Settings, settings
from receivables_gateway.domain.models import RiskBand
from receivables_gateway.domain.policy import RiskPolicy
from receivables_gateway.infrastructure.clients.normalizer import NormalizerClient
from receivables_gateway.infrastructure.clients.webhook import ReportWebhookClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_normalizer_client() -> NormalizerClient:
    return NormalizerClient()


def get_webhook_client() -> ReportWebhookClient:
    return ReportWebhookClient()


def build_risk_policy(config: Settings) -> RiskPolicy:
    """Credit and term policy with configured overrides applied"""
    return RiskPolicy(
        long_term_days=config.long_term_days,
        long_term_multipliers={RiskBand(band): mult for band, mult in config.long_term_multipliers.items()},
        short_term_multipliers={RiskBand(band): mult for band, mult in config.short_term_multipliers.items()},
        credit_limit_rounding=config.credit_limit_rounding,
        default_term=config.default_term_days,
        check_canonical_term=config.check_canonical_term_days,
        overdue_after_days=config.overdue_after_days,
        handover_late_days=config.handover_late_days,
    )


def get_risk_policy() -> RiskPolicy:
    return build_risk_policy(settings)

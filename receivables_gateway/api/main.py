"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from receivables_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from receivables_gateway.api.v1 import analysis, history, reports
from receivables_gateway.infrastructure.observability.logging import setup_logging
from receivables_gateway.config import settings

# history must precede reports so /reports/latest is not read as a report ID
ROUTERS = (
    (analysis.router, "analysis"),
    (history.router, "reports"),
    (reports.router, "reports"),
)


def create_app() -> FastAPI:
    """Build the receivables gateway with logging, tracing and metrics wired in"""
    setup_logging(settings.log_level, settings.service_name)

    app = FastAPI(
        title="Receivables Risk Gateway",
        description="Receivables reconciliation, payment-behaviour metrics and credit limit service",
        version="0.1.0",
    )

    # RequestID runs first so metrics and handlers see the request ID
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics", tags=["ops"])
    def prometheus_metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()

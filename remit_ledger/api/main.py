"""FastAPI application factory"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from remit_ledger.api.errors import register_error_handlers
from remit_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from remit_ledger.api.v1 import auth, clients, guarantors, transactions, withdraws, taxlogs, reports
from remit_ledger.api.v1 import settings as settings_api
from remit_ledger.infrastructure.observability.logging import setup_logging
from remit_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Remit Ledger",
        description="Money-transfer bookkeeping: clients, transfers, withdrawals and tax",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix, tags=["auth"])
    app.include_router(clients.router, prefix=prefix, tags=["clients"])
    app.include_router(guarantors.router, prefix=prefix, tags=["guarantors"])
    app.include_router(transactions.router, prefix=prefix, tags=["transactions"])
    app.include_router(withdraws.router, prefix=prefix, tags=["withdraw"])
    app.include_router(settings_api.router, prefix=prefix, tags=["settings"])
    app.include_router(taxlogs.router, prefix=prefix, tags=["taxlogs"])
    app.include_router(reports.router, prefix=prefix, tags=["reports"])

    return app


app = create_app()

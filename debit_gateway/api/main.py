"""FastAPI application factory"""

from fastapi import FastAPI, Request
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from debit_gateway.api.dependencies import Gateways, build_gateways
from debit_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from debit_gateway.api.v1 import debit_cards, transactions
from debit_gateway.infrastructure.observability.logging import setup_logging
from debit_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app(gateways: Gateways | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Debit Gateway",
        description="Debit card issuance and waterfall withdrawals",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Downstream clients and their circuit breakers live for the app's lifetime
    app.state.gateways = gateways or build_gateways(settings)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check(request: Request):
        circuits = {
            breaker.name: breaker.state.value for breaker in request.app.state.gateways.breakers
        }
        return {"status": "ok", "service": settings.service_name, "circuits": circuits}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(debit_cards.router, prefix="/v1", tags=["debit-cards"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app


app = create_app()

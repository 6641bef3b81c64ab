"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from card_billing.api.dependencies import get_billing_closer
from card_billing.api.middleware import RequestIDMiddleware, MetricsMiddleware
from card_billing.api.v1 import billing, cards, purchases, statements
from card_billing.infrastructure.observability.logging import setup_logging
from card_billing.config import settings
from card_billing.scheduler.runner import BillingScheduler

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the nightly billing scheduler alongside the API when enabled"""
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = BillingScheduler(get_billing_closer())
        scheduler.start()
    else:
        logging.info("Billing scheduler disabled")

    yield

    if scheduler is not None:
        scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Card Billing Engine",
        description="Credit card installments, statement closing and statement payment",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])
    app.include_router(statements.router, prefix="/v1", tags=["statements"])
    app.include_router(billing.router, prefix="/v1", tags=["billing"])

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn"""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)

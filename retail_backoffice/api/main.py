"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from retail_backoffice.api.errors import register_exception_handlers
from retail_backoffice.api.middleware import RequestIDMiddleware, MetricsMiddleware
from retail_backoffice.api.v1 import catalog, customers, payments, transactions
from retail_backoffice.config import settings
from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.infrastructure.database.session import SessionLocal
from retail_backoffice.infrastructure.observability.logging import setup_logging
from retail_backoffice.infrastructure.observability.metrics import record_observer_failure
from retail_backoffice.services.observers import SessionFactory, register_default_observers

# Setup structured logging
setup_logging(settings.log_level)


def build_dispatcher(session_factory: SessionFactory) -> EventDispatcher:
    """Dispatcher with the standard observers, budgeted as configured"""
    dispatcher = EventDispatcher(
        timeout_seconds=settings.observer_timeout_seconds,
        on_failure=record_observer_failure,
    )
    register_default_observers(dispatcher, session_factory)
    return dispatcher


def create_app(
    session_factory: Optional[SessionFactory] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        session_factory: Sessions used by observers (default: the configured database)
        dispatcher: Pre-built dispatcher; replaces the default observer wiring
    """
    dispatcher = dispatcher or build_dispatcher(session_factory or SessionLocal)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        dispatcher.shutdown()

    app = FastAPI(
        title="Retail Back-Office",
        description="Sales transaction and payment lifecycle service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "observers": app.state.dispatcher.observer_names(),
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(catalog.router, prefix="/v1", tags=["catalog"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])

    return app


app = create_app()

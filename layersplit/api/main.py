"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from layersplit.api.errors import register_error_handlers
from layersplit.api.middleware import RequestIDMiddleware, MetricsMiddleware
from layersplit.api.v1 import bills, groups, payments, users
from layersplit.config import Settings, settings as default_settings
from layersplit.infrastructure.clients.ledger import LedgerClient
from layersplit.infrastructure.clients.telegram import TelegramNotifier
from layersplit.infrastructure.database.models import Base
from layersplit.infrastructure.database.session import build_engine, build_session_factory
from layersplit.infrastructure.observability.logging import setup_logging
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder

# Setup structured logging
setup_logging(default_settings.log_level, default_settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=app.state.engine)
    yield
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application; collaborators live on app.state"""
    settings = settings or default_settings

    app = FastAPI(
        title="LayerSplit Ledger",
        description="Bill splitting, debt tracking and on-chain settlement reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.transaction_builder = SuiTransactionBuilder(
        package_id=settings.sui_package_id,
        registry_id=settings.sui_registry_id,
        clock_id=settings.sui_clock_id,
    )
    app.state.ledger_client = LedgerClient(
        base_url=settings.ledger_api_base,
        timeout=settings.http_timeout_seconds,
        max_retries=settings.ledger_max_retries,
        backoff_base=settings.ledger_backoff_base,
    )
    app.state.notifier = (
        TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            api_base=settings.telegram_api_base,
            timeout=settings.http_timeout_seconds,
        )
        if settings.telegram_bot_token
        else None
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
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
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(groups.router, prefix="/v1", tags=["groups"])
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()

"""
FastAPI application factory.

Wires the status store, checkout delegate and webhook receiver into one app:
- CORS configuration
- Error handling with ``{"error": ...}`` bodies
- Request ID tracking
- Structured logging
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payment_relay import __version__
from payment_relay.config import Settings, get_settings
from payment_relay.core.exceptions import PaymentRelayError
from payment_relay.core.status_store import StatusStore
from payment_relay.integrations.checkout import CheckoutDelegate
from payment_relay.integrations.webhook_handler import WebhookReceiver
from payment_relay.monitoring.health import HealthCheck
from payment_relay.monitoring.logging import setup_logging

from .routes import (
    checkout_router,
    monitoring_router,
    pages_router,
    payment_router,
    webhook_router,
)

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None, store: Optional[StatusStore] = None
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Settings to use (loaded from the environment if omitted)
        store: Status store to serve (built from ``settings.payments_file`` if omitted)

    Returns:
        FastAPI: Application whose lifespan loads the store
    """
    settings = settings or get_settings()
    setup_logging(settings)
    store = store if store is not None else StatusStore(settings.payments_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            env=settings.app_env,
            payment_environment=settings.payment_environment,
            payments_file=str(store.path),
        )
        store.load()

        yield

        logger.info("application_shutdown", records=len(store))

    app = FastAPI(
        title="Payment Relay",
        description=(
            "Stripe checkout delegation, webhook status capture and a file-backed "
            "payment status cache."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.store = store
    app.state.checkout = CheckoutDelegate(settings)
    app.state.webhook_receiver = WebhookReceiver(store, settings)
    app.state.health_check = HealthCheck(store, settings)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
        """Add a request ID to the log context and the response headers."""
        request_id = str(uuid.uuid4())
        start_time = time.time()

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        logger.info(
            "request_started",
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_seconds=time.time() - start_time,
            )
            return response

        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_seconds=time.time() - start_time,
            )
            raise

        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(PaymentRelayError)
    async def relay_error_handler(request: Request, exc: PaymentRelayError) -> JSONResponse:
        logger.warning(
            "request_rejected",
            error=exc.message,
            error_type=type(exc).__name__,
            status_code=exc.http_status,
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled exceptions.
        """
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )

    # Include routers
    app.include_router(checkout_router)
    app.include_router(webhook_router)
    app.include_router(payment_router)
    app.include_router(monitoring_router)
    app.include_router(pages_router)

    return app


def main() -> None:
    """Run the relay with uvicorn on the configured host and port."""
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "server_starting",
        url=f"http://localhost:{settings.port}",
        webhook_endpoint=f"http://localhost:{settings.port}/api/webhook",
    )
    uvicorn.run(
        "payment_relay.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

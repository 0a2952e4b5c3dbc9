"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from accounts_receivable.api.dependencies import get_request_id
from accounts_receivable.api.middleware import RequestIDMiddleware, MetricsMiddleware
from accounts_receivable.api.v1 import receivables
from accounts_receivable.config import Settings, settings
from accounts_receivable.domain.access import AccessGate
from accounts_receivable.domain.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    DuplicateInvoiceReferenceError,
    InvalidArgumentError,
    ReceivableNotFoundError,
)
from accounts_receivable.infrastructure.database.session import create_schema
from accounts_receivable.infrastructure.observability.logging import setup_logging
from accounts_receivable.infrastructure.security.tokens import TokenValidator

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate domain errors raised below the API layer into HTTP responses"""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Could not validate credentials"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": "Access denied"})

    @app.exception_handler(ReceivableNotFoundError)
    async def not_found_handler(request: Request, exc: ReceivableNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(DuplicateInvoiceReferenceError)
    async def duplicate_invoice_handler(request: Request, exc: DuplicateInvoiceReferenceError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unexpected error: {exc}",
            exc_info=exc,
            extra={"request_id": get_request_id(request), "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application; fails fast without a JWT key"""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app_settings.create_schema_on_startup:
            create_schema()
        logger.info("Service started", extra={"step": "startup"})
        yield

    app = FastAPI(
        title="Accounts Receivable Service",
        description="Receivable tracking, status lifecycle and collection summaries",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.token_validator = TokenValidator(app_settings.jwt_secret_key, app_settings.jwt_algorithms)
    app.state.access_gate = AccessGate()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": app_settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(receivables.router, tags=["receivables"])

    return app


app = create_app()

"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import compliance, health, reports
from .config import settings
from .errors import (
    IdentityNotVerified,
    InvalidInput,
    KycProviderUnavailable,
    LedgerUnavailable,
    ReservationConflict,
    ZoneRegistryUnavailable,
)
from .persistence.audit_sink import AuditSink
from .services.eligibility.service import ComplianceService

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidInput)
    async def invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(ReservationConflict)
    async def reservation_conflict(request: Request, exc: ReservationConflict) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(IdentityNotVerified)
    async def identity_not_verified(request: Request, exc: IdentityNotVerified) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc), "allowed": False})

    @app.exception_handler(LedgerUnavailable)
    @app.exception_handler(KycProviderUnavailable)
    @app.exception_handler(ZoneRegistryUnavailable)
    async def unavailable(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Compliance dependency unavailable: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "allowed": False},
        )


def create_app(
    service: ComplianceService | None = None,
    audit_sink: AuditSink | None = None,
) -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title=settings.app_name, root_path="")
    app.state.compliance = service
    app.state.audit_sink = audit_sink

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    _register_error_handlers(app)

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(compliance.router, prefix=settings.api_prefix)
    app.include_router(reports.router, prefix=settings.api_prefix)
    return app


app = create_app()

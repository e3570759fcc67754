"""
FastAPI application factory.

The app holds one TransactionService in app.state. When no service is
passed in, it is built from settings at startup and closed at shutdown.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from expense_tracker import __version__
from expense_tracker.api.routes import health_router, router
from expense_tracker.audit import configure_logging
from expense_tracker.config import Settings, get_settings
from expense_tracker.orchestrator import TransactionService, create_app_components
from expense_tracker.services.storage import NotFoundError, StorageUnavailableError


logger = structlog.get_logger(__name__)


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        errors.append({
            "field": ".".join(loc[1:]) or None,
            "location": loc[0] if loc else None,
            "message": err.get("msg", "Invalid value"),
        })
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": _validation_errors(exc),
        },
    )


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "message": "Transaction not found"},
    )


async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error("storage_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "message": "Storage unavailable"},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    service: Optional[TransactionService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        service: Ready-made service (tests pass one in). Built from
            settings at startup when omitted.
        settings: Configuration; defaults to get_settings()
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        # Backend setup (database ping with retries) blocks; keep it off the loop
        app.state.service = service or await asyncio.to_thread(create_app_components)
        logger.info(
            "api_started",
            storage=app.state.service.storage_name,
            environment=settings.app.app_environment,
        )
        try:
            yield
        finally:
            if owned:
                await app.state.service.close()

    app = FastAPI(
        title="Expense Tracker API",
        version=__version__,
        debug=settings.app.debug_mode,
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(health_router)
    app.include_router(router)
    return app

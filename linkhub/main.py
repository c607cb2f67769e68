"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from linkhub.api.deps import close_clients
from linkhub.api.v1.admin import router as admin_router
from linkhub.api.v1.checkout import router as checkout_router
from linkhub.api.v1.domains import router as domains_router
from linkhub.api.v1.pages import router as pages_router
from linkhub.config import settings
from linkhub.errors import (
    CollaboratorError,
    ConflictError,
    InvariantViolation,
    LinkHubError,
    UnknownCheckoutError,
    UnknownPageError,
    ValidationError,
)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer() if settings.environment == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("app_starting", environment=settings.environment)
    yield
    await close_clients()
    logger.info("app_shutting_down")


app = FastAPI(
    title="LinkHub API",
    description="Link-in-bio pages, checkout and custom domains",
    version="0.1.0",
    lifespan=lifespan,
)


def _error_body(exc: LinkHubError, **extra) -> dict:
    return {"error": exc.message, "code": exc.code, **extra}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content=_error_body(exc, field=exc.field))


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    logger.info("request_conflict", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=409, content=_error_body(exc))


@app.exception_handler(CollaboratorError)
async def collaborator_error_handler(request: Request, exc: CollaboratorError) -> JSONResponse:
    logger.warning("collaborator_unavailable", path=request.url.path, service=exc.service)
    return JSONResponse(status_code=503, content=_error_body(exc, retryable=True))


@app.exception_handler(UnknownPageError)
@app.exception_handler(UnknownCheckoutError)
async def not_found_handler(request: Request, exc: InvariantViolation) -> JSONResponse:
    return JSONResponse(status_code=404, content=_error_body(exc))


@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request: Request, exc: InvariantViolation) -> JSONResponse:
    logger.error("invariant_violation", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=400, content=_error_body(exc))


# Include routers
app.include_router(pages_router)
app.include_router(checkout_router)
app.include_router(domains_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "LinkHub API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": "0.1.0"}

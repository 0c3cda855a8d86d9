"""
FastAPI application setup for folio.

Creates the FastAPI app instance, registers routes and installs the
application-wide exception handlers.
"""

import logging
import traceback
from enum import Enum

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from folio import __version__
from folio.api.routes import cron, goals, integrations, kv, projects, sessions, sync
from folio.core.exceptions import (
    ConfigurationError,
    FolioError,
    ProjectNotFoundError,
    StoreError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Server errors (5xx)
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: ErrorCode
    message: str
    detail: str | None = None
    request_id: str | None = None


def _error_body(request: Request, code: ErrorCode, message: str, detail: str | None) -> dict:
    return ErrorResponse(
        error_code=code, message=message, detail=detail, request_id=str(id(request))
    ).model_dump(mode="json")


app = FastAPI(
    title="Folio API",
    description="Portfolio back end: GitHub project sync and accountability tracking",
    version=__version__,
)

# Configure CORS for the local front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(goals.router, prefix="/api", tags=["goals"])
app.include_router(sessions.router, prefix="/api", tags=["sessions"])
app.include_router(kv.router, prefix="/api", tags=["kv"])
app.include_router(sync.router, prefix="/api", tags=["sync"])
app.include_router(cron.router, prefix="/api", tags=["cron"])
app.include_router(projects.router, prefix="/api", tags=["projects"])
app.include_router(integrations.router, prefix="/api", tags=["integrations"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - API health check."""
    return {"status": "ok", "message": "Folio API"}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle FastAPI HTTPException with the standard error body.

    5xx responses are logged at error level, everything else at info.
    """
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code = ErrorCode.NOT_FOUND
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
        error_code = ErrorCode.UNAUTHORIZED
    elif exc.status_code < 500:
        error_code = ErrorCode.INVALID_REQUEST
    else:
        error_code = ErrorCode.INTERNAL_ERROR

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "HTTP %d on %s %s: %s",
        exc.status_code,
        request.method,
        request.url.path,
        exc.detail,
        extra={"request_id": id(request)},
    )

    detail_msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error_code, detail_msg, detail_msg),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors from request bodies and query parameters."""
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
        extra={"request_id": id(request)},
    )

    # Report the first error only
    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Invalid input")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            f"{field}: {error_msg}" if field else error_msg,
        ),
    )


@app.exception_handler(FolioError)
async def folio_exception_handler(request: Request, exc: FolioError) -> JSONResponse:
    """Map folio's own exceptions that escape a route onto status codes."""
    if isinstance(exc, ProjectNotFoundError):
        http_status, error_code = status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND
    elif isinstance(exc, UpstreamError):
        http_status, error_code = status.HTTP_502_BAD_GATEWAY, ErrorCode.UPSTREAM_ERROR
    elif isinstance(exc, ConfigurationError):
        http_status, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.CONFIGURATION_ERROR
    elif isinstance(exc, StoreError):
        http_status, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.STORAGE_ERROR
    else:
        http_status, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR

    log = logger.error if http_status >= 500 else logger.info
    log(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc,
        extra={"request_id": id(request)},
    )
    return JSONResponse(
        status_code=http_status,
        content=_error_body(request, error_code, exc.message, str(exc)),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all uncaught exceptions.

    Logs the full traceback but never sends it to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        str(exc),
        traceback.format_exc(),
        extra={"request_id": id(request)},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, ErrorCode.INTERNAL_ERROR, "An internal server error occurred", str(exc)
        ),
    )

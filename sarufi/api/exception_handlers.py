"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from sarufi.core.exceptions import (
    ConfigurationError,
    ContextUpdateError,
    LLMRateLimitError,
    LLMTimeoutError,
    SarufiError,
    SessionNotActiveError,
    SessionNotFoundError,
    StrategyNotFoundError,
    ValidationError,
)

log = structlog.get_logger(__name__)


def status_code_for(exc: SarufiError) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, (SessionNotFoundError, StrategyNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (ValidationError, ContextUpdateError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, SessionNotActiveError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, LLMTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, LLMRateLimitError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):
    """Register custom exception handlers with the FastAPI application.

    Sets up handlers for all SarufiError subclasses with appropriate
    HTTP status codes, plus handlers for configuration errors and generic exceptions.
    """

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        """Handle configuration errors with HTTP 500 status."""
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "ConfigurationError",
                    "message": "Server configuration error",
                }
            },
        )

    @app.exception_handler(SarufiError)
    async def sarufi_error_handler(
        request: Request,
        exc: SarufiError,
    ) -> JSONResponse:
        """Handle SarufiError exceptions with appropriate HTTP status codes.

        Maps specific error types to HTTP status codes (404 for not found,
        400 for validation, 409 for inactive sessions, 504 for timeout, etc.)
        and returns a consistent error response format.
        """
        status_code = status_code_for(exc)

        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).warning(
            "request_error",
            message=exc.message,
            status_code=status_code,
        )

        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "type": type(exc).__name__,
                    "message": exc.message,
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle all unhandled exceptions with HTTP 500 status."""
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "InternalServerError",
                    "message": "An unexpected error occurred",
                }
            },
        )

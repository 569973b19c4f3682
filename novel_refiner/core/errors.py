"""
Custom exceptions and error handlers for the application.
Provides consistent error responses across the API.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)

GENERIC_UPSTREAM_MESSAGE = "Failed to refine text. Please try again."


# ============================================================================
# CUSTOM EXCEPTIONS
# ============================================================================

class AppException(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Raised when the submitted text is missing, empty or too long."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class RateLimitError(AppException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="RATE_LIMIT_EXCEEDED",
            details=details,
        )


class ConfigurationError(AppException):
    """Raised when a required setting (e.g. the provider API key) is missing."""

    def __init__(self, message: str = "API configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


class UpstreamError(AppException):
    """Raised when the text generation service fails."""

    def __init__(
        self,
        message: str = GENERIC_UPSTREAM_MESSAGE,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "UPSTREAM_ERROR",
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=error_code,
            details=details,
        )


class GenerationError(UpstreamError):
    """
    Raised by a text generator when a single generation call fails.
    Carries the upstream message verbatim.
    """

    def __init__(self, message: str = "Generation failed", provider: Optional[str] = None):
        self.provider = provider
        super().__init__(
            message=message,
            details={"provider": provider} if provider else None,
            error_code="GENERATION_ERROR",
        )


# ============================================================================
# ERROR RESPONSE FORMATTER
# ============================================================================

def create_error_response(
    message: str,
    error_code: str = "ERROR",
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create standardized error response.

    Args:
        message: Error message
        error_code: Application error code
        request_id: Optional request ID for tracking

    Returns:
        Error response dictionary
    """
    response = {
        "error": message,
        "code": error_code,
    }

    if request_id:
        response["request_id"] = request_id

    return response


# ============================================================================
# ERROR HANDLERS
# ============================================================================

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom AppException instances.

    Args:
        request: FastAPI request
        exc: AppException instance

    Returns:
        JSON response with error details
    """
    request_id = request.headers.get("X-Request-ID")

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.error_code}: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "request_id": request_id,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            message=exc.message,
            error_code=exc.error_code,
            request_id=request_id,
        ),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle FastAPI HTTPException instances.

    Args:
        request: FastAPI request
        exc: HTTPException instance

    Returns:
        JSON response with error details
    """
    request_id = request.headers.get("X-Request-ID")

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            request_id=request_id,
        ),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle malformed request bodies.

    A body that is not JSON, or whose `text` is not a string, is reported
    as 400 like any other invalid input.
    """
    request_id = request.headers.get("X-Request-ID")

    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={
            "errors": errors,
            "request_id": request_id,
        },
    )

    message = "Invalid request body"
    if errors:
        message = f"Invalid request body: {errors[0]['field']}: {errors[0]['message']}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response(
            message=message,
            error_code="VALIDATION_ERROR",
            request_id=request_id,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Exception instance

    Returns:
        JSON response with generic error message
    """
    request_id = request.headers.get("X-Request-ID")

    logger.error(
        f"Unexpected error: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "request_id": request_id,
        },
    )

    # Don't expose internal errors
    message = "An unexpected error occurred"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            message=message,
            error_code="INTERNAL_ERROR",
            request_id=request_id,
        ),
    )


# ============================================================================
# REGISTER ERROR HANDLERS
# ============================================================================

def register_error_handlers(app) -> None:
    """
    Register all error handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Error handlers registered successfully")

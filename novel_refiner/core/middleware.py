"""
Middleware configuration for the FastAPI application.
Includes CORS, request ID tracking, timing, and security headers.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
import logging

from novel_refiner.core.config import settings
from novel_refiner.core.logging import log_request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 30000


# ============================================================================
# REQUEST ID MIDDLEWARE
# ============================================================================

class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add unique request ID to each request.
    Useful for tracking and debugging.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


# ============================================================================
# TIMING MIDDLEWARE
# ============================================================================

class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track request processing time.
    Adds X-Process-Time header to response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

        # Refinement fans out to the model, so only flag very slow requests
        if process_time > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} - {process_time:.2f}ms",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": process_time,
                }
            )

        return response


# ============================================================================
# SECURITY HEADERS MIDDLEWARE
# ============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        security_headers = {
            "X-Frame-Options": "DENY",
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }

        for header, value in security_headers.items():
            response.headers[header] = value

        return response


# ============================================================================
# LOGGING MIDDLEWARE
# ============================================================================

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {str(e)}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": duration_ms,
                }
            )
            raise

        log_request(
            logger,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=(time.time() - start_time) * 1000,
            request_id=request_id,
        )

        return response


# ============================================================================
# CORS MIDDLEWARE CONFIGURATION
# ============================================================================

def configure_cors(app) -> None:
    """
    Configure CORS middleware for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=settings.ALLOW_CREDENTIALS,
        allow_methods=settings.ALLOWED_METHODS,
        allow_headers=settings.ALLOWED_HEADERS,
        expose_headers=["X-Request-ID", "X-Process-Time"],
        max_age=3600,
    )

    logger.info(
        f"CORS configured with origins: {', '.join(settings.ALLOWED_ORIGINS[:3])}{'...' if len(settings.ALLOWED_ORIGINS) > 3 else ''}"
    )


# ============================================================================
# REGISTER ALL MIDDLEWARE
# ============================================================================

def register_middleware(app) -> None:
    """
    Register all middleware with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(SecurityHeadersMiddleware)

    # Logging is added before request ID so it runs inside it and sees the ID
    if settings.DEBUG:
        app.add_middleware(LoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(TimingMiddleware)

    configure_cors(app)

    logger.info("All middleware registered successfully")

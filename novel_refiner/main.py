"""
Main FastAPI application entry point.
Configures and initializes the application with all middleware, routers, and settings.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import JSONResponse
import logging

from novel_refiner.core.config import settings, print_settings_summary
from novel_refiner.core.logging import setup_logging
from novel_refiner.core.errors import register_error_handlers
from novel_refiner.core.middleware import register_middleware
from novel_refiner.api.v1.router import api_router
from novel_refiner.services.rate_limiter import create_rate_limiter

# Initialize logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
    log_file=settings.LOG_FILE,
)

logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN EVENT HANDLERS
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown events.
    """
    # ========================================================================
    # STARTUP
    # ========================================================================
    logger.info("Starting application...")

    print_settings_summary()

    if not settings.provider_api_key:
        logger.warning(
            f"No API key configured for provider '{settings.LLM_PROVIDER}'; "
            f"refinement requests will fail with a configuration error"
        )

    # Initialize Sentry if enabled
    if settings.SENTRY_ENABLED and settings.SENTRY_DSN:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                environment=settings.SENTRY_ENVIRONMENT,
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            )
            logger.info("Sentry initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {str(e)}")

    # Initialize Redis
    if settings.RATE_LIMIT_ENABLED and settings.RATE_LIMIT_BACKEND == "redis":
        from novel_refiner.db.redis import initialize_redis
        await initialize_redis()

    logger.info("Application startup complete")

    yield

    # ========================================================================
    # SHUTDOWN
    # ========================================================================
    logger.info("Shutting down application...")

    if settings.RATE_LIMIT_ENABLED and settings.RATE_LIMIT_BACKEND == "redis":
        try:
            from novel_refiner.db.redis import close_redis
            await close_redis()
        except Exception as e:
            logger.error(f"Error closing Redis: {str(e)}")

    logger.info("Application shutdown complete")


# ============================================================================
# CREATE FASTAPI APPLICATION
# ============================================================================

def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Refines machine-translated web novel chapters with a hosted language model",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # One limiter per application; the refiner client is built on first use
    app.state.rate_limiter = create_rate_limiter(settings)
    app.state.refiner_client = None

    register_error_handlers(app)
    register_middleware(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    return app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

app = create_application()


# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API health check.

    Returns:
        JSON response with API status
    """
    return JSONResponse(
        content={
            "success": True,
            "message": f"{settings.APP_NAME} is running",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if settings.DEBUG else None,
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        JSON response with health status
    """
    return JSONResponse(
        content={
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "provider": settings.LLM_PROVIDER,
            "provider_configured": bool(settings.provider_api_key),
        }
    )


@app.get("/ping", tags=["Health"])
async def ping():
    """
    Simple ping endpoint for quick health checks.

    Returns:
        Plain text "pong"
    """
    return "pong"


# ============================================================================
# DEVELOPMENT INFO
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server...")

    uvicorn.run(
        "novel_refiner.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=settings.DEBUG,
    )

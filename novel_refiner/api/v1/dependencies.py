"""
Dependencies for the refinement routes.
Provides the rate limiter, refiner client and refinement service.
"""

from fastapi import Depends, Request

from novel_refiner.core.config import Settings, get_settings
from novel_refiner.services.rate_limiter import RateLimiter, create_rate_limiter
from novel_refiner.services.refiner import RefinerClient
from novel_refiner.services.refinement_service import RefinementService
import logging

logger = logging.getLogger(__name__)


# ============================================================================
# RATE LIMITER DEPENDENCY
# ============================================================================

def get_rate_limiter(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RateLimiter:
    """
    Get the application-wide rate limiter.

    The limiter lives on app state so that every request shares one window.
    """
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = create_rate_limiter(settings)
        request.app.state.rate_limiter = limiter
    return limiter


# ============================================================================
# REFINER CLIENT DEPENDENCY
# ============================================================================

def get_refiner_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RefinerClient:
    """
    Get the refiner client, building it on first use.

    Raises:
        ConfigurationError: The provider API key is missing
    """
    refiner = getattr(request.app.state, "refiner_client", None)
    if refiner is None:
        refiner = RefinerClient.from_settings(settings)
        request.app.state.refiner_client = refiner
        logger.info(f"Refiner client ready (provider={settings.LLM_PROVIDER})")
    return refiner


# ============================================================================
# REFINEMENT SERVICE DEPENDENCY
# ============================================================================

def get_refinement_service(
    refiner: RefinerClient = Depends(get_refiner_client),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
) -> RefinementService:
    """
    Assemble the refinement service for a request.

    Usage:
        @router.post("/refine")
        async def refine(service: RefinementService = Depends(get_refinement_service)):
            ...
    """
    return RefinementService(
        refiner=refiner,
        rate_limiter=rate_limiter,
        chunk_size=settings.CHUNK_SIZE,
        max_total_length=settings.MAX_TOTAL_LENGTH,
        expose_upstream_errors=settings.EXPOSE_UPSTREAM_ERRORS,
    )

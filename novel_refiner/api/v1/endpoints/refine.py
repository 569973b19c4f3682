"""
Refinement API endpoint.
Turns machine-translated prose into web-novel formatted text.
"""

from fastapi import APIRouter, Depends, status

from novel_refiner.models.refine import ErrorResponse, RefineRequest, RefineResponse
from novel_refiner.services.refinement_service import RefinementService
from novel_refiner.api.v1.dependencies import get_refinement_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/refine", tags=["Refinement"])


@router.post(
    "",
    response_model=RefineResponse,
    status_code=status.HTTP_200_OK,
    summary="Refine machine-translated text",
    description="Split long text into chunks, refine each with the language model, and reformat the result",
    responses={
        400: {"model": ErrorResponse, "description": "Missing, empty or over-length text"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Configuration or upstream failure"},
    },
)
async def refine_text(
    payload: RefineRequest,
    service: RefinementService = Depends(get_refinement_service),
) -> RefineResponse:
    """
    Refine machine-translated text.

    **Process:**
    1. Validate the text (non-empty, within the configured maximum length)
    2. Take a slot from the rate limiter
    3. Split into chunks on paragraph, then sentence boundaries
    4. Refine all chunks concurrently
    5. Join in order and apply web-novel formatting

    A single failing chunk fails the whole request.
    """
    refined_text = await service.refine(payload.text)
    return RefineResponse(refinedText=refined_text)

"""
Pydantic models for the refinement API and the generation call.
"""

from typing import Optional
from pydantic import BaseModel, Field

from novel_refiner.core.config import Settings


# ============================================================================
# API MODELS
# ============================================================================

class RefineRequest(BaseModel):
    """Machine-translated text submitted for refinement."""

    # Optional so that a missing field is reported as "No text provided"
    text: Optional[str] = Field(default=None, description="Machine-translated prose")


class RefineResponse(BaseModel):
    """Refined, web-novel formatted text."""

    refinedText: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
    code: str
    request_id: Optional[str] = None


# ============================================================================
# GENERATION MODELS
# ============================================================================

class GenerationParameters(BaseModel):
    """Sampling parameters passed to the text generation service."""

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.8, gt=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1)
    max_output_tokens: int = Field(default=8192, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationParameters":
        return cls(
            temperature=settings.GENERATION_TEMPERATURE,
            top_p=settings.GENERATION_TOP_P,
            top_k=settings.GENERATION_TOP_K,
            max_output_tokens=settings.GENERATION_MAX_OUTPUT_TOKENS,
        )

"""
Refinement Service
Validates input, applies the rate limit, fans chunks out to the refiner
client and stitches the results back together.
"""

import asyncio
import logging
import time
from typing import List, Optional

from novel_refiner.core.errors import (
    GENERIC_UPSTREAM_MESSAGE,
    GenerationError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from novel_refiner.core.logging import log_error
from novel_refiner.services.rate_limiter import RateLimiter
from novel_refiner.services.reassembler import reassemble
from novel_refiner.services.refiner import RefinerClient
from novel_refiner.services.text_chunker import DEFAULT_CHUNK_SIZE, split_into_chunks

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOTAL_LENGTH = 50000


class RefinementService:
    """Owns the rate limiter and the refiner client for one application."""

    def __init__(
        self,
        refiner: RefinerClient,
        rate_limiter: RateLimiter,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_total_length: int = DEFAULT_MAX_TOTAL_LENGTH,
        expose_upstream_errors: bool = False,
    ):
        self.refiner = refiner
        self.rate_limiter = rate_limiter
        self.chunk_size = chunk_size
        self.max_total_length = max_total_length
        self.expose_upstream_errors = expose_upstream_errors

    def validate(self, text: Optional[str]) -> str:
        """
        Check the submitted text.

        Raises:
            ValidationError: Missing, blank or over-length text
        """
        if text is None or not text.strip():
            raise ValidationError("No text provided")

        if len(text) > self.max_total_length:
            raise ValidationError(
                f"Text exceeds maximum length of {self.max_total_length} characters",
                details={"length": len(text), "max_length": self.max_total_length},
            )

        return text

    async def refine(self, text: Optional[str]) -> str:
        """
        Refine text end to end.

        Raises:
            ValidationError: Invalid input (no upstream call is made)
            RateLimitError: The current window is exhausted
            UpstreamError: Any chunk failed; the whole batch is discarded
        """
        text = self.validate(text)

        if not await self.rate_limiter.try_acquire():
            raise RateLimitError()

        chunks = split_into_chunks(text, self.chunk_size)
        logger.info(
            f"Refining {len(text)} chars in {len(chunks)} chunk(s)",
            extra={"text_length": len(text), "chunk_count": len(chunks)},
        )

        start = time.time()
        refined = await self._refine_chunks(chunks)
        result = reassemble(refined)

        duration_ms = (time.time() - start) * 1000
        logger.info(
            f"✅ Refinement complete: {len(chunks)} chunk(s) in {duration_ms:.0f}ms",
            extra={"chunk_count": len(chunks), "duration_ms": duration_ms},
        )
        return result

    async def _refine_chunks(self, chunks: List[str]) -> List[str]:
        """
        Dispatch every chunk at once; results keep the chunk order.

        Every call is awaited to completion before the first failure is
        raised, so no sibling outcome is left unretrieved.
        """
        results = await asyncio.gather(
            *[self.refiner.refine_chunk(chunk) for chunk in chunks],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, GenerationError):
                log_error(logger, result, {"provider": result.provider, "chunk_count": len(chunks)})
                message = result.message if self.expose_upstream_errors else GENERIC_UPSTREAM_MESSAGE
                raise UpstreamError(message, details={"provider": result.provider}) from result
            if isinstance(result, BaseException):
                raise result

        return list(results)

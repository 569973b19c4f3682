"""
Pytest Configuration and Shared Fixtures

Provides fake generators, a controllable clock and service builders.
"""

# Standard library
import asyncio
import os
from typing import Callable, List, Optional

# Keep test runs from writing log files; must happen before settings load
os.environ.setdefault("LOG_FILE", "")

# Third-party
import pytest

# Local application
from novel_refiner.models.refine import GenerationParameters
from novel_refiner.services.rate_limiter import InMemoryRateLimiter
from novel_refiner.services.refinement_service import RefinementService
from novel_refiner.services.refiner import REFINEMENT_PROMPT, RefinerClient, TextGenerator


# ============================================================================
# Fakes
# ============================================================================

class FakeGenerator(TextGenerator):
    """Generator that echoes (or transforms) the chunk found in the prompt."""

    provider = "fake"

    def __init__(
        self,
        reply: Optional[Callable[[str], str]] = None,
        error: Optional[Exception] = None,
        delay: Optional[Callable[[str], float]] = None,
    ):
        self.reply = reply or (lambda chunk: chunk)
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []

    @property
    def chunks(self) -> List[str]:
        return [prompt[len(REFINEMENT_PROMPT):] for prompt in self.prompts]

    async def generate(self, prompt: str, params: GenerationParameters) -> str:
        self.prompts.append(prompt)
        chunk = prompt[len(REFINEMENT_PROMPT):]
        if self.delay:
            await asyncio.sleep(self.delay(chunk))
        if self.error:
            raise self.error
        return self.reply(chunk)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_generator():
    """Echoing fake generator."""
    return FakeGenerator()


@pytest.fixture
def fake_clock():
    """Controllable clock for rate limiter tests."""
    return FakeClock()


@pytest.fixture
def make_service():
    """Factory for a RefinementService around a fake generator."""

    def _make(
        generator: Optional[TextGenerator] = None,
        max_requests: int = 100,
        chunk_size: int = 4000,
        max_total_length: int = 50000,
        expose_upstream_errors: bool = False,
    ) -> RefinementService:
        return RefinementService(
            refiner=RefinerClient(generator or FakeGenerator()),
            rate_limiter=InMemoryRateLimiter(max_requests=max_requests, window_seconds=3600),
            chunk_size=chunk_size,
            max_total_length=max_total_length,
            expose_upstream_errors=expose_upstream_errors,
        )

    return _make

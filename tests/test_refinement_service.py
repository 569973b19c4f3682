"""
Unit Tests for the Refinement Service

Validation, rate limiting, concurrent dispatch ordering and all-or-nothing
failure handling, using fake generators.
"""

# Third-party
import pytest

# Local application
from novel_refiner.core.errors import (
    GENERIC_UPSTREAM_MESSAGE,
    GenerationError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from conftest import FakeGenerator


class TestValidation:
    """Input validation happens before any upstream call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   ", "\n\n\t"])
    async def test_blank_input_rejected(self, make_service, text):
        generator = FakeGenerator()
        service = make_service(generator)

        with pytest.raises(ValidationError) as exc_info:
            await service.refine(text)

        assert exc_info.value.message == "No text provided"
        assert exc_info.value.status_code == 400
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_over_length_rejected_with_limit(self, make_service):
        generator = FakeGenerator()
        service = make_service(generator, max_total_length=100)

        with pytest.raises(ValidationError) as exc_info:
            await service.refine("x" * 101)

        assert exc_info.value.message == "Text exceeds maximum length of 100 characters"
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_exact_limit_accepted(self, make_service):
        service = make_service(max_total_length=10)
        assert await service.refine("abcdefghi.") == "abcdefghi."

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_consume_quota(self, make_service):
        service = make_service(max_requests=1)

        with pytest.raises(ValidationError):
            await service.refine("")

        assert await service.refine("Still allowed.") == "Still allowed."


class InFlightGenerator(FakeGenerator):
    """Fake generator that records how many calls overlap."""

    def __init__(self):
        super().__init__(delay=lambda chunk: 0.05)
        self.in_flight = 0
        self.peak = 0

    async def generate(self, prompt, params):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            return await super().generate(prompt, params)
        finally:
            self.in_flight -= 1


class TestRefine:
    """End-to-end refinement through the fake generator."""

    @pytest.mark.asyncio
    async def test_short_text_is_one_request(self, make_service):
        generator = FakeGenerator(reply=lambda chunk: chunk.replace("dream", "nightmare"))
        service = make_service(generator)

        text = "He woke.\n\nIt was a dream.\n\nOr was it?"
        result = await service.refine(text)

        assert generator.chunks == [text]
        assert result == "He woke.\n\nIt was a nightmare.\n\nOr was it?"

    @pytest.mark.asyncio
    async def test_long_text_split_and_reassembled_in_order(self, make_service):
        generator = FakeGenerator(
            # Later chunks answer first
            delay=lambda chunk: 0.05 if "Part 1" in chunk else 0.0,
        )
        service = make_service(generator, chunk_size=20)

        text = "\n\n".join(f"Part {i} begins." for i in range(1, 5))
        result = await service.refine(text)

        assert len(generator.prompts) == 4
        assert result == "Part 1 begins.\n\n\nPart 2 begins.\n\n\nPart 3 begins.\n\n\nPart 4 begins."

    @pytest.mark.asyncio
    async def test_chunks_are_dispatched_concurrently(self, make_service):
        generator = InFlightGenerator()
        service = make_service(generator, chunk_size=20)

        text = "\n\n".join(f"Part {i} begins." for i in range(1, 5))
        await service.refine(text)

        assert len(generator.prompts) == 4
        assert generator.peak == 4

    @pytest.mark.asyncio
    async def test_rate_limited_after_ceiling(self, make_service):
        generator = FakeGenerator()
        service = make_service(generator, max_requests=2)

        await service.refine("One.")
        await service.refine("Two.")

        with pytest.raises(RateLimitError) as exc_info:
            await service.refine("Three.")

        assert exc_info.value.status_code == 429
        assert len(generator.prompts) == 2


class TestUpstreamFailures:
    """A single failing chunk fails the whole batch."""

    @pytest.mark.asyncio
    async def test_failure_uses_generic_message(self, make_service):
        generator = FakeGenerator(error=GenerationError("API key invalid", provider="fake"))
        service = make_service(generator)

        with pytest.raises(UpstreamError) as exc_info:
            await service.refine("Some text.")

        assert exc_info.value.message == GENERIC_UPSTREAM_MESSAGE
        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "UPSTREAM_ERROR"

    @pytest.mark.asyncio
    async def test_failure_can_expose_upstream_message(self, make_service):
        generator = FakeGenerator(error=GenerationError("quota exceeded", provider="fake"))
        service = make_service(generator, expose_upstream_errors=True)

        with pytest.raises(UpstreamError) as exc_info:
            await service.refine("Some text.")

        assert exc_info.value.message == "quota exceeded"

    @pytest.mark.asyncio
    async def test_one_bad_chunk_fails_batch(self, make_service):
        def reply(chunk: str) -> str:
            if "poison" in chunk:
                raise GenerationError("blocked", provider="fake")
            return chunk

        generator = FakeGenerator(reply=reply)
        service = make_service(generator, chunk_size=20)

        text = "First part here.\n\nThe poison part.\n\nLast part here."
        with pytest.raises(UpstreamError):
            await service.refine(text)

        assert len(generator.prompts) == 3

    @pytest.mark.asyncio
    async def test_failure_waits_for_sibling_chunks(self, make_service):
        finished = []

        def reply(chunk: str) -> str:
            if "poison" in chunk:
                raise GenerationError("blocked", provider="fake")
            finished.append(chunk)
            return chunk

        generator = FakeGenerator(
            reply=reply,
            # The failing chunk answers first
            delay=lambda chunk: 0.0 if "poison" in chunk else 0.05,
        )
        service = make_service(generator, chunk_size=20)

        text = "The poison part.\n\nSlow part one.\n\nSlow part two."
        with pytest.raises(UpstreamError):
            await service.refine(text)

        assert sorted(finished) == ["Slow part one.", "Slow part two."]

"""
Refiner client: sends text chunks to a hosted text generation model.

Gemini is the default provider; OpenAI and Anthropic are available through
LLM_PROVIDER. Every provider failure is raised as GenerationError and is
never retried.
"""

import logging
from typing import Optional

import anthropic
from google import genai
from google.genai import types as genai_types
from openai import AsyncOpenAI

from novel_refiner.core.config import Settings, SUPPORTED_PROVIDERS
from novel_refiner.core.errors import ConfigurationError, GenerationError
from novel_refiner.models.refine import GenerationParameters

logger = logging.getLogger(__name__)


REFINEMENT_PROMPT = """You are an expert translator specializing in Korean web novels. Your task is to refine machine-translated text following strict web novel formatting rules.

WEB NOVEL FORMATTING RULES:
1. Each paragraph should be short (1-3 sentences maximum)
2. Add empty line breaks between ALL paragraphs
3. Dialogue must ALWAYS be on its own line
4. Internal thoughts must be on separate lines
5. Action sequences should be broken into very short paragraphs
6. Scene transitions need double line breaks

Examples of correct formatting:

Chapter titles stand alone:
Chapter 12: The Return (Part 1)

Dialogue and actions:
He blinked, covering his face with his hand.

"Was it a dream?" he whispered.

The cold air brushed against his nose.

Internal monologue:
'Am I still... ruthless?'

The question echoed in his mind.

Action sequences:
The sword gleamed.

He struck without hesitation.

IMPORTANT RULES:
- Never combine dialogue with action descriptions
- Keep paragraphs extremely short
- Use empty lines between ALL paragraphs
- Start new paragraphs for every change in action/thought/dialogue
- Maintain dramatic pacing through paragraph breaks
- Return only the refined text, without commentary

Please refine the following machine-translated text while strictly following these formatting rules:

"""


def build_prompt(chunk: str, preamble: str = REFINEMENT_PROMPT) -> str:
    """Wrap a chunk in the instructional preamble."""
    return preamble + chunk


# ============================================================================
# TEXT GENERATORS
# ============================================================================

class TextGenerator:
    """One request in, generated text out."""

    provider: str = "unknown"

    async def generate(self, prompt: str, params: GenerationParameters) -> str:
        raise NotImplementedError

    def _checked(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            raise GenerationError("Empty response from generation service", provider=self.provider)
        return text


class GeminiGenerator(TextGenerator):
    """Google Gemini through the google-genai async client."""

    provider = "gemini"

    def __init__(self, api_key: str, model: str, client: Optional[genai.Client] = None):
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    async def generate(self, prompt: str, params: GenerationParameters) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(
                    temperature=params.temperature,
                    top_p=params.top_p,
                    top_k=params.top_k,
                    max_output_tokens=params.max_output_tokens,
                ),
            )
        except Exception as e:
            raise GenerationError(getattr(e, "message", None) or str(e), provider=self.provider) from e

        return self._checked(response.text)


class OpenAIGenerator(TextGenerator):
    """OpenAI chat completions. The API has no top-k, so it is not sent."""

    provider = "openai"

    def __init__(self, api_key: str, model: str, client: Optional[AsyncOpenAI] = None):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: str, params: GenerationParameters) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_output_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise GenerationError(getattr(e, "message", None) or str(e), provider=self.provider) from e

        if not response.choices:
            raise GenerationError("Empty response from generation service", provider=self.provider)
        return self._checked(response.choices[0].message.content)


class AnthropicGenerator(TextGenerator):
    """Anthropic messages API. Sends temperature and top-k only."""

    provider = "anthropic"

    def __init__(self, api_key: str, model: str, client: Optional[anthropic.AsyncAnthropic] = None):
        self.model = model
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def generate(self, prompt: str, params: GenerationParameters) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=params.max_output_tokens,
                temperature=min(params.temperature, 1.0),
                top_k=params.top_k,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise GenerationError(getattr(e, "message", None) or str(e), provider=self.provider) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        return self._checked(text)


def create_generator(settings: Settings) -> TextGenerator:
    """
    Build the generator for the configured provider.

    Raises:
        ConfigurationError: Unknown provider or missing API key
    """
    provider = settings.LLM_PROVIDER

    if provider not in SUPPORTED_PROVIDERS:
        logger.error(f"Unsupported LLM_PROVIDER '{provider}'")
        raise ConfigurationError(details={"provider": provider})

    api_key = settings.provider_api_key
    if not api_key:
        logger.error(f"Missing API key for provider '{provider}'")
        raise ConfigurationError(details={"provider": provider})

    if provider == "gemini":
        return GeminiGenerator(api_key=api_key, model=settings.GEMINI_MODEL)
    if provider == "openai":
        return OpenAIGenerator(api_key=api_key, model=settings.OPENAI_MODEL)
    return AnthropicGenerator(api_key=api_key, model=settings.ANTHROPIC_MODEL)


# ============================================================================
# REFINER CLIENT
# ============================================================================

class RefinerClient:
    """Refines one chunk per call with a fixed preamble and parameters."""

    def __init__(
        self,
        generator: TextGenerator,
        params: Optional[GenerationParameters] = None,
        preamble: str = REFINEMENT_PROMPT,
    ):
        self.generator = generator
        self.params = params or GenerationParameters()
        self.preamble = preamble

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefinerClient":
        return cls(
            generator=create_generator(settings),
            params=GenerationParameters.from_settings(settings),
        )

    async def refine_chunk(self, chunk: str) -> str:
        """
        Refine a single chunk.

        Raises:
            GenerationError: The generation service failed or returned nothing
        """
        logger.debug(f"Refining chunk of {len(chunk)} chars via {self.generator.provider}")
        return await self.generator.generate(build_prompt(chunk, self.preamble), self.params)

from typing import Optional

import structlog
from openai import AsyncOpenAI, OpenAIError

from ..core.config import Settings
from ..core.exceptions import UpstreamProviderError
from ..core.interfaces import TextGenerator

logger = structlog.get_logger(__name__)


class OpenAITextGenerator(TextGenerator):
    """
    Generative backend over the OpenAI chat-completions API.
    Works with any OpenAI-compatible endpoint through OPENAI_BASE_URL.
    """
    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.model = settings.AI_MODEL
        self.temperature = settings.AI_TEMPERATURE
        self.client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.AI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        logger.info("text_generator_initialized", model=self.model)

    async def generate_text(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except OpenAIError as e:
            raise UpstreamProviderError(f"Generative backend call failed: {e}") from e

        if not response.choices:
            raise UpstreamProviderError("Generative backend returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise UpstreamProviderError("Generative backend returned empty content")
        return content.strip()

    async def close(self) -> None:
        await self.client.close()


def build_text_generator(settings: Settings) -> Optional[TextGenerator]:
    """Return a generator when an API key is configured, otherwise None."""
    if not settings.OPENAI_API_KEY:
        logger.warning("text_generator_disabled", reason="OPENAI_API_KEY not set")
        return None
    return OpenAITextGenerator(settings)

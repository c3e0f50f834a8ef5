"""
Generative model clients.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from google import genai

from enhancement_bridge.core.config import GeminiSettings
from enhancement_bridge.core.exceptions import ConfigurationError, LLMError
from enhancement_bridge.core.logging import get_logger

logger = get_logger(__name__)


class LLMClient(ABC):
    @abstractmethod
    async def generate_response(self, prompt: str) -> Optional[str]:
        """
        Send a prompt and return the response text.

        Returns None when the model answers without a text payload.
        """


class GeminiClient(LLMClient):
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", client: Any = None) -> None:
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    async def generate_response(self, prompt: str) -> Optional[str]:
        logger.info("Sending prompt to Gemini", model=self.model, prompt_chars=len(prompt))
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except Exception as e:
            raise LLMError(str(e), details={"model": self.model}) from e

        text = getattr(response, "text", None) if response is not None else None
        if not isinstance(text, str):
            logger.error("Gemini response has no text", response=repr(response)[:500])
            return None
        return text


def create_llm_client(gemini_settings: GeminiSettings) -> LLMClient:
    if not gemini_settings.api_key:
        raise ConfigurationError("GEMINI_API_KEY is required for record generation")
    return GeminiClient(api_key=gemini_settings.api_key, model=gemini_settings.model)

"""
Gemini Provider Module
Sends analysis prompts to Google Gemini through the google-genai async client.
"""

import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from mingjing import config
from .interface import ContentPart, GenerationSettings, ProviderInterface

logger = logging.getLogger("MINGJING_GEMINI")


class GeminiProvider(ProviderInterface):
    """
    Google Gemini completion provider.

    Lifecycle:
        provider = GeminiProvider(api_key="...")
        provider.validate()
        text = await provider.generate(parts, schema, settings)

    The client is created lazily so the service can start without a key;
    every call then fails and surfaces as an analysis error.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key if api_key is not None else config.GOOGLE_API_KEY
        self.model = model or config.GEMINI_MODEL
        self.client: Optional[genai.Client] = None
        self.is_ready = False

    def validate(self) -> bool:
        """
        Initialize the Gemini client.

        Returns:
            True if the client is ready to send requests
        """
        if self.is_ready:
            return True

        if not self.api_key:
            logger.error("Google API key not provided (set GOOGLE_API_KEY)")
            return False

        try:
            self.client = genai.Client(api_key=self.api_key)
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            self.client = None
            return False

        self.is_ready = True
        logger.info("Gemini client initialized for model %s", self.model)
        return True

    async def generate(
        self,
        parts: list[ContentPart],
        schema: dict[str, Any],
        settings: GenerationSettings,
    ) -> Optional[str]:
        if not self.validate():
            raise RuntimeError("Gemini client is not initialized")

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=types.Content(role="user", parts=[self._to_part(p) for p in parts]),
            config=types.GenerateContentConfig(
                response_mime_type=settings.response_mime_type,
                response_schema=schema,
                temperature=settings.temperature,
            ),
        )
        return response.text

    @staticmethod
    def _to_part(part: ContentPart) -> types.Part:
        if part.is_inline_data:
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
        return types.Part.from_text(text=part.text)

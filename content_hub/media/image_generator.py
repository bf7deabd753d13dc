"""
Article image generation with provider fallback.

Tries the OpenAI image API first, then Gemini Imagen. Each provider call
goes through the RetryController; a provider that still fails is logged
and skipped. The result is a base64 data URI, or None when every
provider failed or none is configured.
"""

import base64
from typing import Any, Optional

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from content_hub.config.settings import Settings, get_settings
from content_hub.errors import ContentHubError
from content_hub.llm.retry import RetryController
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


class ImageGenerator:
    """
    Generates 16:9 article images.

    Example:
        generator = ImageGenerator.from_settings(get_settings())
        src = await generator.generate("A cozy reading nook, cinematic light")
    """

    def __init__(
        self,
        openai_client: Optional[AsyncOpenAI] = None,
        genai_client: Optional[genai.Client] = None,
        openai_model: str = "dall-e-3",
        gemini_model: str = "imagen-4.0-generate-001",
        retry: Optional[RetryController] = None,
    ):
        self.openai_client = openai_client
        self.genai_client = genai_client
        self.openai_model = openai_model
        self.gemini_model = gemini_model
        self.retry = retry or RetryController()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, retry: Optional[RetryController] = None) -> "ImageGenerator":
        """Build clients for every provider that has an API key configured."""
        settings = settings or get_settings()
        return cls(
            openai_client=AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0) if settings.openai_api_key else None,
            genai_client=genai.Client(api_key=settings.google_api_key) if settings.google_api_key else None,
            openai_model=settings.openai_image_model,
            gemini_model=settings.gemini_image_model,
            retry=retry,
        )

    @property
    def available(self) -> bool:
        return self.openai_client is not None or self.genai_client is not None

    async def _openai_image(self, prompt: str) -> Optional[str]:
        response = await self.retry.call(
            lambda: self.openai_client.images.generate(
                model=self.openai_model,
                prompt=prompt,
                n=1,
                size="1792x1024",
                response_format="b64_json",
            ),
            label="openai:image",
        )
        b64 = response.data[0].b64_json if response.data else None
        return f"data:image/png;base64,{b64}" if b64 else None

    async def _gemini_image(self, prompt: str) -> Optional[str]:
        response = await self.retry.call(
            lambda: self.genai_client.aio.models.generate_images(
                model=self.gemini_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/jpeg",
                    aspect_ratio="16:9",
                ),
            ),
            label="gemini:image",
        )
        images = response.generated_images or []
        image_bytes: Any = images[0].image.image_bytes if images and images[0].image else None
        if not image_bytes:
            return None
        if isinstance(image_bytes, bytes):
            image_bytes = base64.b64encode(image_bytes).decode("ascii")
        return f"data:image/jpeg;base64,{image_bytes}"

    async def generate(self, prompt: str) -> Optional[str]:
        """
        Generate an image for a prompt.

        Returns:
            A ``data:`` URI, or None if no provider produced an image
        """
        if self.openai_client is not None:
            try:
                logger.info("Attempting image generation with OpenAI...")
                src = await self._openai_image(prompt)
                if src:
                    return src
            except ContentHubError as e:
                logger.warning(f"OpenAI image generation failed, falling back to Gemini: {e}")

        if self.genai_client is not None:
            try:
                logger.info("Attempting image generation with Gemini Imagen...")
                src = await self._gemini_image(prompt)
                if src:
                    return src
            except ContentHubError as e:
                logger.error(f"Gemini image generation also failed: {e}")

        logger.error("All image generation services failed or are unavailable.")
        return None

# ─────────────────────────────────────────────────────────────────────────────
# Gemini Provider — google-genai async client
# ─────────────────────────────────────────────────────────────────────────────
# A client is built per call from the process configuration, so the API key
# never lives on a long-lived object and never crosses into a response.
# No retries: a failed call surfaces as UpstreamError.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Sequence

import structlog
from google import genai
from google.genai import types

from gateway.config import Settings
from gateway.exceptions import ProviderNotConfiguredError, UpstreamError
from gateway.providers.protocol import ImagePart

logger = structlog.get_logger(__name__)


class GeminiModel:
    """GenerativeModel backed by the Gemini API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def name(self) -> str:
        return self._settings.gemini_model

    def _client(self) -> genai.Client:
        api_key = self._settings.gemini_api_key.get_secret_value()
        if not api_key:
            raise ProviderNotConfiguredError("GEMINI_API_KEY")
        return genai.Client(api_key=api_key)

    @staticmethod
    def build_contents(prompt: str, images: Sequence[ImagePart]) -> list[types.Content]:
        """Prompt text first, then one inline-data part per image."""
        parts = [types.Part.from_text(text=prompt)]
        parts.extend(types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images)
        return [types.Content(role="user", parts=parts)]

    async def generate(
        self,
        prompt: str,
        images: Sequence[ImagePart] = (),
        json_output: bool = False,
    ) -> str:
        client = self._client()
        config = types.GenerateContentConfig(response_mime_type="application/json") if json_output else None
        try:
            response = await client.aio.models.generate_content(
                model=self._settings.gemini_model,
                contents=self.build_contents(prompt, images),
                config=config,
            )
        except Exception as e:
            raise UpstreamError("generate", f"{type(e).__name__}: {e}") from e

        text = response.text
        if not text:
            raise UpstreamError("generate", "empty response (blocked or no candidates)")
        return text

    async def embed(self, text: str) -> list[float]:
        client = self._client()
        try:
            response = await client.aio.models.embed_content(
                model=self._settings.gemini_embedding_model,
                contents=text,
                config=types.EmbedContentConfig(
                    output_dimensionality=self._settings.embedding_dimensions
                ),
            )
        except Exception as e:
            raise UpstreamError("embed", f"{type(e).__name__}: {e}") from e

        if not response.embeddings or response.embeddings[0].values is None:
            raise UpstreamError("embed", "empty embedding response")
        return list(response.embeddings[0].values)

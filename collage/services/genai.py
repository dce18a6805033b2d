"""
Prompt enhancement and image generation through the Gemini REST API.

The collage treats both calls as opaque collaborators: the enhancer turns a
short idea into a detailed image prompt, the generator turns that prompt into
an inline image returned as a data URI.
"""

import logging
from typing import Iterable, Optional
import httpx
from collage.config import settings

logger = logging.getLogger(__name__)

ENHANCE_TEMPLATE = """You are an assistant that helps young people develop their ideas for how
their municipality could grow and change. Take the idea below and rewrite it
as a clear, concrete image prompt that municipal planners could act on.

- Keep the original intent and voice of the idea.
- Make it concrete and feasible without losing its ambition.
- Add planning context (meeting places, transport, culture, housing,
  sustainability, digital participation) only where it helps.
- The prompt must ask for either a sketch, a photorealistic depiction or an
  urban planning mockup.

The idea from the group:

{prompt}

Reply with the improved prompt only."""

SUMMARY_TEMPLATE = """You are an assistant that analyzes image ratings and summarizes which
prompts worked and which did not.

{rows}

Give a concise summary highlighting the most effective prompts (many thumbs
up, few thumbs down) and the least effective ones, with advice for writing
better prompts in the future."""


class GenAIError(Exception):
    pass


class GenAINotConfigured(GenAIError):
    pass


class GenerationError(GenAIError):
    pass


class GenAIClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.base_url = (base_url or settings.GEMINI_API_BASE).rstrip("/")
        self.text_model = text_model or settings.GEMINI_TEXT_MODEL
        self.image_model = image_model or settings.GEMINI_IMAGE_MODEL
        self.timeout = timeout or settings.GENAI_TIMEOUT
        self._transport = transport

    async def _generate_content(self, model: str, text: str, modalities: Optional[list] = None) -> list:
        if not self.api_key:
            raise GenAINotConfigured("GEMINI_API_KEY is not set")

        body = {"contents": [{"role": "user", "parts": [{"text": text}]}]}
        if modalities:
            body["generationConfig"] = {"responseModalities": modalities}

        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=body)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Gemini %s returned %s: %s", model, e.response.status_code, e.response.text[:500])
            raise GenerationError(f"Upstream model returned {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Gemini %s request failed: %s", model, e)
            raise GenerationError("Upstream model request failed")

        candidates = data.get("candidates") or []
        if not candidates:
            raise GenerationError("Upstream model returned no candidates")
        return (candidates[0].get("content") or {}).get("parts") or []

    async def enhance_prompt(self, prompt: str) -> str:
        parts = await self._generate_content(self.text_model, ENHANCE_TEMPLATE.format(prompt=prompt))
        text = "".join(p.get("text", "") for p in parts).strip()
        if not text:
            raise GenerationError("Prompt enhancement returned no text")
        return text

    async def generate_image(self, prompt: str) -> str:
        """Return the first generated image as a data URI."""
        parts = await self._generate_content(self.image_model, prompt, modalities=["TEXT", "IMAGE"])
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return f"data:{mime};base64,{inline['data']}"
        raise GenerationError("Image generation returned no image")

    async def enhance_and_generate(self, prompt: str) -> tuple[str, str]:
        enhanced = await self.enhance_prompt(prompt)
        logger.info("Enhanced prompt (%d -> %d chars)", len(prompt), len(enhanced))
        data_uri = await self.generate_image(enhanced)
        return enhanced, data_uri

    async def summarize_ratings(self, rows: Iterable[dict]) -> str:
        lines = []
        for row in rows:
            lines.append(
                f"Image ID: {row['id']}\nPrompt: {row['prompt']}\n"
                f"Thumbs Up: {row['thumbs_up']}\nThumbs Down: {row['thumbs_down']}\n"
            )
        parts = await self._generate_content(
            self.text_model, SUMMARY_TEMPLATE.format(rows="\n".join(lines))
        )
        text = "".join(p.get("text", "") for p in parts).strip()
        if not text:
            raise GenerationError("Summary returned no text")
        return text


def get_genai_client() -> GenAIClient:
    return GenAIClient()

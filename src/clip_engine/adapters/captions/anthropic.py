"""Anthropic caption provider implementation."""

from typing import Any

import httpx

from clip_engine.adapters.captions.base import CaptionError, CaptionProvider
from clip_engine.config import settings
from clip_engine.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You write captions for short-form vertical videos on TikTok, Instagram Reels "
    "and YouTube Shorts. Reply with a single caption of at most 200 characters, "
    "ending with three to five relevant hashtags. No quotes, no preamble."
)


class AnthropicCaptionProvider(CaptionProvider):
    """Anthropic API provider for caption suggestions."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.anthropic_model
        self.base_url = base_url
        self.timeout = timeout

        if not self.api_key:
            logger.warning("Anthropic API key not configured")

    @property
    def name(self) -> str:
        return f"anthropic:{self.model}"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

    async def suggest(self, context: str | None = None) -> str:
        """Generate a caption using the Anthropic Messages API."""
        if not self.api_key:
            raise CaptionError("Anthropic API key not configured")

        prompt = f"Write a caption for this clip: {context}" if context else (
            "Write a caption for an engaging short clip."
        )
        payload: dict[str, Any] = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": 200,
            "temperature": 0.9,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("anthropic_caption_request_failed", error=str(e))
            raise CaptionError(f"Anthropic request failed: {e}") from e

        caption = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        ).strip()

        usage = data.get("usage", {})
        logger.info(
            "anthropic_caption_response",
            model=self.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )

        if not caption:
            raise CaptionError("Anthropic returned an empty caption")
        return caption

    async def health_check(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key)

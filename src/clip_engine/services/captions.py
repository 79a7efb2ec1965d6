"""Caption suggestion service."""

from clip_engine.adapters.captions import (
    AnthropicCaptionProvider,
    CaptionError,
    CaptionProvider,
    StubCaptionProvider,
)
from clip_engine.config import settings
from clip_engine.domain.errors import DependencyFailureError
from clip_engine.logging import get_logger

logger = get_logger(__name__)

MAX_CONTEXT_LENGTH = 2000


def get_caption_provider() -> CaptionProvider:
    """Get the configured caption provider."""
    provider = settings.caption_provider.lower()

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            logger.warning("Anthropic caption provider selected without API key, using stub")
            return StubCaptionProvider()
        return AnthropicCaptionProvider()

    if provider != "stub":
        logger.warning(f"Unknown caption_provider '{provider}', using stub")

    return StubCaptionProvider()


async def suggest_caption(
    context: str | None = None, provider: CaptionProvider | None = None
) -> str:
    """Suggest a non-empty caption for a clip.

    Raises:
        DependencyFailureError: If the provider fails or returns nothing.
    """
    provider = provider or get_caption_provider()
    context = (context or "").strip()[:MAX_CONTEXT_LENGTH] or None

    try:
        caption = (await provider.suggest(context)).strip()
    except CaptionError as e:
        logger.error("caption_failed", provider=provider.name, error=str(e))
        raise DependencyFailureError(f"Caption provider failed: {e}") from e

    if not caption:
        raise DependencyFailureError("Caption provider returned an empty caption")

    logger.info("caption_suggested", provider=provider.name, length=len(caption))
    return caption

"""Stub caption provider for testing."""

import random

from clip_engine.adapters.captions.base import CaptionProvider
from clip_engine.logging import get_logger

logger = get_logger(__name__)

CAPTION_TEMPLATES = [
    "POV: this is what you've been looking for... \U0001f440 {context} #viral #fyp #creator",
    "The secret nobody teaches you at school ✨ Save this! {context} #content #creator",
    "Wait for the last second... \U0001f631 This changes everything. {context} #trending",
]


class StubCaptionProvider(CaptionProvider):
    """Stub provider that fills a canned caption with the given context."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    @property
    def name(self) -> str:
        return "stub"

    async def suggest(self, context: str | None = None) -> str:
        logger.info("stub_caption_suggest", has_context=bool(context))
        template = self._rng.choice(CAPTION_TEMPLATES)
        return " ".join(template.format(context=(context or "").strip()).split())

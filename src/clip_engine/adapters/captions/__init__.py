"""Caption suggestion providers."""

from clip_engine.adapters.captions.anthropic import AnthropicCaptionProvider
from clip_engine.adapters.captions.base import CaptionError, CaptionProvider
from clip_engine.adapters.captions.stub import StubCaptionProvider

__all__ = [
    "AnthropicCaptionProvider",
    "CaptionError",
    "CaptionProvider",
    "StubCaptionProvider",
]

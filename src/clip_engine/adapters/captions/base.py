"""Base interface for caption suggestion providers."""

from abc import ABC, abstractmethod


class CaptionError(Exception):
    """Raised when a provider cannot produce a caption."""

    pass


class CaptionProvider(ABC):
    """Abstract base class for caption suggestion providers.

    Providers are stateless: given free-text context they return a single
    non-empty caption string.

    Implementations:
    - StubCaptionProvider: Picks from canned captions
    - AnthropicCaptionProvider: Uses the Anthropic Messages API
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def suggest(self, context: str | None = None) -> str:
        """Suggest a social caption.

        Args:
            context: Optional free-text description of the clip

        Returns:
            A non-empty caption

        Raises:
            CaptionError: If no caption could be produced
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available."""
        return True

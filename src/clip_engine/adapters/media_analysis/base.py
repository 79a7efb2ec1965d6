"""Base interface for media analysis providers."""

from abc import ABC, abstractmethod
from pathlib import Path

from clip_engine.domain.models import AnalysisResult


class MediaAnalysisError(Exception):
    """Raised when a provider cannot analyze a video."""

    pass


class MediaAnalyzer(ABC):
    """Abstract base class for media analysis providers.

    Given a stored video, a provider reports the whole-video duration and an
    ordered list of candidate clip intervals with a virality score each. The
    engine validates the output; providers do not need to.

    Implementations:
    - StubMediaAnalyzer: Fixed-length windows with simulated scores
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def analyze(self, video_path: Path) -> AnalysisResult:
        """Analyze a stored video.

        Args:
            video_path: Local path of the stored upload

        Returns:
            AnalysisResult with duration and clip candidates

        Raises:
            MediaAnalysisError: If the video cannot be analyzed
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available."""
        return True

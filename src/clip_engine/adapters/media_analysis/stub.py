"""Stub media analyzer that simulates clip detection."""

import random
from pathlib import Path

from clip_engine.adapters.media_analysis.base import MediaAnalysisError, MediaAnalyzer
from clip_engine.domain.models import AnalysisResult, ClipCandidate
from clip_engine.logging import get_logger

logger = get_logger(__name__)

CLIP_TITLES = [
    "Opening Hook",
    "Best Moment",
    "Main Punchline",
    "Exclusive Tips",
    "Call to Action",
]


class StubMediaAnalyzer(MediaAnalyzer):
    """Stub analyzer returning back-to-back fixed-length windows.

    The clip count is drawn from ``[min_clips, max_clips]`` and capped by how
    many windows fit in the video. Scores are drawn from ``[70, 100)``.
    """

    def __init__(
        self,
        duration_seconds: float = 247.5,
        clip_length_seconds: float = 45.0,
        min_clips: int = 3,
        max_clips: int = 6,
        seed: int | None = None,
    ) -> None:
        self.duration_seconds = duration_seconds
        self.clip_length_seconds = clip_length_seconds
        self.min_clips = min_clips
        self.max_clips = max_clips
        self._rng = random.Random(seed)

    @property
    def name(self) -> str:
        return "stub"

    async def analyze(self, video_path: Path) -> AnalysisResult:
        """Return simulated clip boundaries for the video."""
        logger.info("stub_analyze_video", video_path=str(video_path))

        if not video_path.exists():
            raise MediaAnalysisError(f"Video file not found: {video_path}")

        fits = int(self.duration_seconds // self.clip_length_seconds)
        count = min(self._rng.randint(self.min_clips, self.max_clips), fits)

        clips = [
            ClipCandidate(
                start=i * self.clip_length_seconds,
                end=(i + 1) * self.clip_length_seconds,
                score=self._rng.randint(70, 99),
                title=f"{CLIP_TITLES[i % len(CLIP_TITLES)]} #{i + 1}",
            )
            for i in range(count)
        ]

        return AnalysisResult(
            duration=self.duration_seconds,
            clips=clips,
            metadata={"source": "stub", "clip_length": self.clip_length_seconds},
        )

"""Media analysis adapters (clip boundaries and virality scores)."""

from clip_engine.adapters.media_analysis.base import MediaAnalysisError, MediaAnalyzer
from clip_engine.adapters.media_analysis.stub import StubMediaAnalyzer

__all__ = [
    "MediaAnalysisError",
    "MediaAnalyzer",
    "StubMediaAnalyzer",
]

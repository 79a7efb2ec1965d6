"""Adapters for external services."""

from clip_engine.adapters.analytics.base import AnalyticsAdapter
from clip_engine.adapters.captions.base import CaptionProvider
from clip_engine.adapters.media_analysis.base import MediaAnalyzer

__all__ = [
    "AnalyticsAdapter",
    "CaptionProvider",
    "MediaAnalyzer",
]

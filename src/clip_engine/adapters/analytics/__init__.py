"""Analytics ingestion adapters."""

from clip_engine.adapters.analytics.base import AnalyticsAdapter, MetricsSnapshot
from clip_engine.adapters.analytics.stub import StubAnalyticsAdapter

__all__ = [
    "AnalyticsAdapter",
    "MetricsSnapshot",
    "StubAnalyticsAdapter",
]

"""Base interface for analytics ingestion adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from clip_engine.domain.enums import Platform
from clip_engine.domain.models import EngagementCounters


@dataclass
class MetricsSnapshot:
    """Lifetime engagement for one clip on one platform as of ``fetched_at``."""

    platform: Platform
    clip_id: int
    fetched_at: datetime
    counters: EngagementCounters
    raw_data: dict[str, Any] | None = None


class AnalyticsAdapter(ABC):
    """Abstract base class for analytics ingestion adapters.

    Implementations:
    - StubAnalyticsAdapter: Returns simulated data for testing
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """The platform this adapter fetches analytics from."""
        ...

    @abstractmethod
    async def fetch_metrics(self, clip_id: int) -> MetricsSnapshot:
        """Fetch engagement for a clip posted on this platform.

        Args:
            clip_id: The clip to fetch metrics for

        Returns:
            MetricsSnapshot with the clip's lifetime counters
        """
        ...

    async def health_check(self) -> bool:
        """Check if the analytics API is available."""
        return True

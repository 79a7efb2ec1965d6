"""Stub analytics adapter for testing."""

import random
from datetime import UTC, datetime

from clip_engine.adapters.analytics.base import AnalyticsAdapter, MetricsSnapshot
from clip_engine.domain.enums import Platform
from clip_engine.domain.models import EngagementCounters
from clip_engine.logging import get_logger

logger = get_logger(__name__)


class StubAnalyticsAdapter(AnalyticsAdapter):
    """Stub adapter that simulates counters growing between fetches."""

    def __init__(self, platform: Platform = Platform.TIKTOK, seed: int | None = None) -> None:
        self._platform = platform
        self._rng = random.Random(seed)
        self._totals: dict[int, EngagementCounters] = {}

    @property
    def platform(self) -> Platform:
        return self._platform

    async def fetch_metrics(self, clip_id: int) -> MetricsSnapshot:
        """Return simulated lifetime metrics; never lower than the previous fetch."""
        logger.info("stub_fetch_metrics", platform=self.platform, clip_id=clip_id)

        previous = self._totals.get(clip_id, EngagementCounters())
        if previous.views:
            new_views = self._rng.randint(0, 500)
        else:
            new_views = self._rng.randint(100, 10000)
        counters = EngagementCounters(
            views=previous.views + new_views,
            likes=previous.likes + int(new_views * self._rng.uniform(0.02, 0.15)),
            comments=previous.comments + int(new_views * self._rng.uniform(0.001, 0.02)),
            shares=previous.shares + int(new_views * self._rng.uniform(0.005, 0.05)),
        )
        self._totals[clip_id] = counters

        return MetricsSnapshot(
            platform=self.platform,
            clip_id=clip_id,
            fetched_at=datetime.now(UTC),
            counters=counters,
            raw_data={"source": "stub", "clip_id": clip_id},
        )

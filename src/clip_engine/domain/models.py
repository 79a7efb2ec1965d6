"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from typing import Any

from clip_engine.domain.enums import Platform


@dataclass
class ClipCandidate:
    """A scored interval proposed by media analysis."""

    start: float
    end: float
    score: int
    title: str | None = None

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class AnalysisResult:
    """Output of the media analysis collaborator for one video."""

    duration: float
    clips: list[ClipCandidate] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class EngagementCounters:
    """Engagement counters for one clip on one platform and date bucket."""

    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0

    @property
    def engagement_rate(self) -> float | None:
        """Interactions per view, or None when there are no views."""
        if self.views == 0:
            return None
        return (self.likes + self.comments + self.shares) / self.views


@dataclass
class AnalyticsSummary:
    """Lifetime analytics rollup for a user (or one platform of a user)."""

    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_posts: int = 0
    platform: Platform | None = None

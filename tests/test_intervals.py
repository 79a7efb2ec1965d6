"""Tests for clip interval validation."""

import pytest

from clip_engine.domain.errors import ValidationError
from clip_engine.domain.intervals import validate_analysis
from clip_engine.domain.models import AnalysisResult, ClipCandidate


def make_result(duration: float, *spans: tuple[float, float, int]) -> AnalysisResult:
    return AnalysisResult(
        duration=duration,
        clips=[ClipCandidate(start=s, end=e, score=score) for s, e, score in spans],
    )


def test_returns_clips_ordered_by_start() -> None:
    result = make_result(240.0, (90, 135, 75), (0, 45, 90), (45, 90, 80))

    ordered = validate_analysis(result, min_clips=1, max_clips=10)

    assert [c.start for c in ordered] == [0, 45, 90]


def test_touching_and_gapped_intervals_are_allowed() -> None:
    result = make_result(240.0, (0, 45, 70), (45, 90, 71), (120, 240, 72))

    assert len(validate_analysis(result, min_clips=1, max_clips=10)) == 3


def test_overlapping_intervals_rejected() -> None:
    result = make_result(240.0, (0, 50, 70), (45, 90, 80))

    with pytest.raises(ValidationError, match="overlaps"):
        validate_analysis(result, min_clips=1, max_clips=10)


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (-1.0, 10.0),
        (200.0, 240.5),
        (30.0, 30.0),
        (30.0, 20.0),
        (float("nan"), 10.0),
        (0.0, float("inf")),
    ],
)
def test_bad_boundaries_rejected(start: float, end: float) -> None:
    result = make_result(240.0, (start, end, 80))

    with pytest.raises(ValidationError):
        validate_analysis(result, min_clips=1, max_clips=10)


@pytest.mark.parametrize("score", [-1, 101, 85.5, True])
def test_bad_scores_rejected(score) -> None:
    result = AnalysisResult(duration=240.0, clips=[ClipCandidate(start=0, end=45, score=score)])

    with pytest.raises(ValidationError, match="score"):
        validate_analysis(result, min_clips=1, max_clips=10)


def test_score_bounds_are_inclusive() -> None:
    result = make_result(240.0, (0, 45, 0), (45, 90, 100))

    assert len(validate_analysis(result, min_clips=1, max_clips=10)) == 2


@pytest.mark.parametrize("duration", [0.0, -5.0, float("nan"), float("inf")])
def test_bad_duration_rejected(duration: float) -> None:
    result = AnalysisResult(duration=duration, clips=[ClipCandidate(start=0, end=1, score=80)])

    with pytest.raises(ValidationError, match="duration"):
        validate_analysis(result, min_clips=1, max_clips=10)


def test_clip_count_bounds() -> None:
    with pytest.raises(ValidationError, match="0 clips"):
        validate_analysis(AnalysisResult(duration=240.0), min_clips=1, max_clips=10)

    too_many = make_result(240.0, *[(i * 10, i * 10 + 5, 80) for i in range(4)])
    with pytest.raises(ValidationError, match="4 clips"):
        validate_analysis(too_many, min_clips=1, max_clips=3)

"""Validation of clip intervals produced by media analysis.

Policy: intervals are non-degenerate, lie inside ``[0, duration]`` and are
pairwise disjoint. Touching endpoints (``a.end == b.start``) are allowed, as
are gaps between clips. Scores are integers in ``[0, 100]``.
"""

import math

from clip_engine.domain.errors import ValidationError
from clip_engine.domain.models import AnalysisResult, ClipCandidate

MIN_SCORE = 0
MAX_SCORE = 100


def validate_analysis(
    result: AnalysisResult,
    min_clips: int,
    max_clips: int,
) -> list[ClipCandidate]:
    """Check an analysis result and return its clips ordered by start time.

    Raises:
        ValidationError: If the duration, clip count, any interval or any
            score breaks the policy.
    """
    duration = result.duration
    if not isinstance(duration, (int, float)) or not math.isfinite(duration) or duration <= 0:
        raise ValidationError(f"Invalid video duration: {duration!r}")

    count = len(result.clips)
    if count < min_clips or count > max_clips:
        raise ValidationError(
            f"Analysis returned {count} clips, expected between {min_clips} and {max_clips}"
        )

    ordered = sorted(result.clips, key=lambda c: (c.start, c.end))

    for index, clip in enumerate(ordered):
        if not (math.isfinite(clip.start) and math.isfinite(clip.end)):
            raise ValidationError(f"Clip {index + 1} has a non-finite boundary")
        if clip.end <= clip.start:
            raise ValidationError(
                f"Clip {index + 1} is degenerate: start={clip.start} end={clip.end}"
            )
        if clip.start < 0 or clip.end > duration:
            raise ValidationError(
                f"Clip {index + 1} [{clip.start}, {clip.end}] lies outside [0, {duration}]"
            )
        if isinstance(clip.score, bool) or not isinstance(clip.score, int):
            raise ValidationError(f"Clip {index + 1} score must be an integer")
        if not MIN_SCORE <= clip.score <= MAX_SCORE:
            raise ValidationError(
                f"Clip {index + 1} score {clip.score} outside [{MIN_SCORE}, {MAX_SCORE}]"
            )
        if index > 0 and clip.start < ordered[index - 1].end:
            raise ValidationError(
                f"Clip {index + 1} overlaps clip {index}: "
                f"{clip.start} < {ordered[index - 1].end}"
            )

    return ordered

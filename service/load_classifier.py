"""
Weekly period count derived from a subject's academic load.
"""
from typing import List, Optional
import logging

from models.schemas import SubjectLoad

logger = logging.getLogger(__name__)

# (annual_hours range, credits lower bound, base periods), highest first.
# Ranges are inclusive, None means unbounded above. Hours falling between two
# ranges (99.5, say) are ambiguous and credits pick the bucket.
LOAD_BUCKETS = (
    ((100, None), 60, 8),
    ((70, 99), 40, 6),
    ((40, 69), 20, 4),
    ((0, 39), 0, 2),
)

PRACTICAL_RATIO = 0.6


def _hours_index(annual_hours: float) -> Optional[int]:
    """Bucket holding annual_hours, None when it falls between two ranges."""
    for idx, ((lower, upper), _, _) in enumerate(LOAD_BUCKETS):
        if annual_hours >= lower and (upper is None or annual_hours <= upper):
            return idx
    if annual_hours < LOAD_BUCKETS[-1][0][0]:
        # Negative input clamps into the lowest bucket
        return len(LOAD_BUCKETS) - 1
    return None


def _credits_index(credits: float) -> int:
    for idx, (_, lower, _) in enumerate(LOAD_BUCKETS):
        if credits >= lower:
            return idx
    return len(LOAD_BUCKETS) - 1


def base_periods(annual_hours: float, credits: float = 0) -> int:
    """
    Look up the base weekly periods for a load.

    annual_hours decides the bucket. credits settles hours that fall between
    two ranges and is only logged when it disagrees anywhere else.
    """
    hours_idx = _hours_index(annual_hours)
    credits_idx = _credits_index(credits)

    if hours_idx is None:
        lower_idx = next(
            idx for idx in range(1, len(LOAD_BUCKETS))
            if annual_hours > LOAD_BUCKETS[idx][0][1]
        )
        # The higher bucket needs credits that reach it
        hours_idx = lower_idx - 1 if credits_idx < lower_idx else lower_idx
        logger.debug(
            f"Annual hours {annual_hours} fall between buckets, credits {credits} "
            f"select {LOAD_BUCKETS[hours_idx][2]} periods"
        )
    elif credits_idx != hours_idx:
        logger.debug(
            f"Credits {credits} suggest {LOAD_BUCKETS[credits_idx][2]} periods, "
            f"annual hours {annual_hours} win with {LOAD_BUCKETS[hours_idx][2]}"
        )
    return LOAD_BUCKETS[hours_idx][2]


def weekly_periods(load: SubjectLoad, is_exam_term: bool = False) -> int:
    """
    Number of periods per week a subject needs.

    Total function: out-of-range values clamp instead of failing, the result is
    never negative and no upper cap is applied.
    """
    annual_hours = max(0.0, float(load.annual_hours))
    practical_hours = min(max(0.0, float(load.practical_hours)), annual_hours)

    periods = base_periods(annual_hours, max(0.0, float(load.credits)))
    if practical_hours >= PRACTICAL_RATIO * annual_hours:
        periods += 1
    if load.is_exam_subject and is_exam_term:
        periods += 1
    return max(0, periods)


def classify_subjects(subjects: List[SubjectLoad], is_exam_term: bool = False) -> List[SubjectLoad]:
    """Return copies of the subjects annotated with weekly_periods."""
    return [
        subject.model_copy(update={"weekly_periods": weekly_periods(subject, is_exam_term)})
        for subject in subjects
    ]

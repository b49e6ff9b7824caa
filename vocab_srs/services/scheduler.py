"""SM-2 scheduling step.

Pure computation: given a rating on the 0-5 scale and the item's current
scheduling state, return the next repetition count, easiness factor and
interval. No I/O, no clock, no mutation of the inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from vocab_srs.core.exceptions import InvalidRatingError

MIN_RATING = 0
MAX_RATING = 5
PASSING_RATING = 3

MIN_EASINESS_FACTOR = 1.3
DEFAULT_EASINESS_FACTOR = 2.5

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6


@dataclass(frozen=True)
class SchedulingInput:
    repetition_count: int = 0
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    last_interval_days: int = 0


@dataclass(frozen=True)
class SchedulingResult:
    repetition_count: int
    easiness_factor: float
    interval_days: int


def validate_rating(rating: object) -> int:
    """Return ``rating`` as an int or raise :class:`InvalidRatingError`."""
    # bool is an int subclass; True/False are not ratings.
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError(rating)
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRatingError(rating)
    return rating


def is_passing(rating: int) -> bool:
    return rating >= PASSING_RATING


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_easiness(
    easiness_factor: float,
    rating: int,
    ceiling: Optional[float] = None,
) -> float:
    miss = MAX_RATING - rating
    updated = easiness_factor + (0.1 - miss * (0.08 + miss * 0.02))
    updated = max(MIN_EASINESS_FACTOR, updated)
    if ceiling is not None:
        updated = min(ceiling, updated)
    return updated


def next_state(
    rating: int,
    current: SchedulingInput,
    easiness_ceiling: Optional[float] = None,
) -> SchedulingResult:
    """Compute the scheduling state that follows a review graded ``rating``.

    Successful reviews (rating >= 3) grow the interval 1 -> 6 -> previous
    interval x easiness; failures restart the item at one day. The easiness
    update uses the pre-review easiness for the interval and is floored at
    1.3 (optionally capped by ``easiness_ceiling``).
    """

    rating = validate_rating(rating)

    if is_passing(rating):
        if current.repetition_count <= 0:
            interval = FIRST_INTERVAL_DAYS
        elif current.repetition_count == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = _round_half_up(current.last_interval_days * current.easiness_factor)
        interval = max(FIRST_INTERVAL_DAYS, interval)
        repetition_count = max(current.repetition_count, 0) + 1
    else:
        interval = FIRST_INTERVAL_DAYS
        repetition_count = 0

    return SchedulingResult(
        repetition_count=repetition_count,
        easiness_factor=next_easiness(current.easiness_factor, rating, easiness_ceiling),
        interval_days=interval,
    )


class ItemScheduler:
    """Object façade over :func:`next_state` carrying the configured ceiling."""

    def __init__(self, easiness_ceiling: Optional[float] = None):
        self.easiness_ceiling = easiness_ceiling

    def next_state(self, rating: int, current: SchedulingInput) -> SchedulingResult:
        return next_state(rating, current, easiness_ceiling=self.easiness_ceiling)

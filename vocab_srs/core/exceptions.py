"""Domain errors raised by the scheduling core.

Every error carries a stable ``code`` and the HTTP status the API layer maps
it to, so routers can translate them without knowing each subclass.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SRSError(Exception):
    """Base class for recoverable scheduling errors."""

    code: str
    status_code: int = 400
    detail: str | None = None

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.detail or self.code


class InvalidRatingError(SRSError):
    """Rating outside the 0-5 scale. Raised before any state is touched."""

    def __init__(self, rating: object):
        super().__init__(
            code="invalid_rating",
            status_code=422,
            detail=f"rating must be an integer between 0 and 5, got {rating!r}",
        )
        self.rating = rating


class PersistenceWriteFailure(SRSError):
    """The gateway could not persist a review.

    Retrying with identical inputs is safe: the scheduler is deterministic for
    a given pre-state and the pre-state was left untouched.
    """

    def __init__(self, learner_id: str, reason: str = ""):
        super().__init__(
            code="persistence_write_failure",
            status_code=503,
            detail=f"could not persist snapshot for learner {learner_id}: {reason}".rstrip(": "),
        )
        self.learner_id = learner_id


class CorruptRecordError(SRSError):
    """A stored record violates an invariant and was reset to defaults."""

    def __init__(self, item_id: str, reason: str):
        super().__init__(
            code="corrupt_record",
            status_code=500,
            detail=f"record {item_id!r} reset to defaults: {reason}",
        )
        self.item_id = item_id
        self.reason = reason


class ClockSkewError(SRSError):
    """The stored goal day lies in the future relative to the current clock."""

    def __init__(self, stored_date_key: str, today_key: str):
        super().__init__(
            code="clock_skew",
            status_code=409,
            detail=f"stored day {stored_date_key} is ahead of current day {today_key}",
        )
        self.stored_date_key = stored_date_key
        self.today_key = today_key

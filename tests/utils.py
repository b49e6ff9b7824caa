"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timedelta

from vocab_srs.core.exceptions import PersistenceWriteFailure
from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot
from vocab_srs.schemas.srs.srs_schema import SRSRecord
from vocab_srs.services.persistence import InMemorySnapshotGateway


def make_record(
    item_id: str,
    *,
    reviewed_at: datetime | None = None,
    interval_days: int = 1,
    repetition_count: int | None = None,
    easiness_factor: float = 2.5,
    **kwargs,
) -> SRSRecord:
    """Build a record; reviewed ones get a due date matching their interval."""

    if reviewed_at is None:
        return SRSRecord(
            item_id=item_id,
            repetition_count=repetition_count or 0,
            easiness_factor=easiness_factor,
            **kwargs,
        )

    if repetition_count is None:
        repetition_count = 1

    defaults = {"total_reviews": max(repetition_count, 1)}
    defaults.update(kwargs)
    return SRSRecord(
        item_id=item_id,
        repetition_count=repetition_count,
        easiness_factor=easiness_factor,
        interval_days=interval_days,
        last_reviewed_at=reviewed_at,
        next_due_at=reviewed_at + timedelta(days=interval_days),
        **defaults,
    )


def due_record(item_id: str, now: datetime, *, overdue_days: int = 1, **kwargs) -> SRSRecord:
    interval = kwargs.pop("interval_days", 1)
    reviewed_at = now - timedelta(days=interval + overdue_days)
    return make_record(item_id, reviewed_at=reviewed_at, interval_days=interval, **kwargs)


class FailingGateway(InMemorySnapshotGateway):
    """In-memory gateway whose next ``failures`` saves raise."""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def save(self, learner_id: str, snapshot: LearnerSnapshot) -> None:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise PersistenceWriteFailure(learner_id, "disk unavailable")
        super().save(learner_id, snapshot)

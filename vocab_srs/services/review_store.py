"""Owner of a learner's per-item scheduling records."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from vocab_srs.core.config import settings
from vocab_srs.core.exceptions import CorruptRecordError, PersistenceWriteFailure
from vocab_srs.schemas.progress.goal_schema import GoalState
from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot
from vocab_srs.schemas.srs.srs_schema import MasteryLevel, ReviewHistoryEntry, SRSRecord
from vocab_srs.services import due_queue
from vocab_srs.services.persistence import SnapshotGateway
from vocab_srs.services.scheduler import (
    MAX_RATING,
    MIN_EASINESS_FACTOR,
    MIN_RATING,
    ItemScheduler,
    SchedulingInput,
    validate_rating,
)
from vocab_srs.utils.date_utils import ensure_aware, to_utc

logger = logging.getLogger(__name__)

MASTERY_MIN_REVIEWS = 3
MASTERY_MIN_RETENTION = 85.0
MASTERED_MIN_REPETITIONS = 5


def default_record(item_id: str, now: Optional[datetime] = None) -> SRSRecord:
    return SRSRecord(item_id=str(item_id), created_at=now)


def find_invariant_violation(record: SRSRecord) -> Optional[str]:
    """Return a description of the first broken invariant, or ``None``."""

    if record.easiness_factor < MIN_EASINESS_FACTOR:
        return f"easiness_factor {record.easiness_factor} below {MIN_EASINESS_FACTOR}"
    if record.repetition_count < 0:
        return f"negative repetition_count {record.repetition_count}"
    if record.interval_days < 0:
        return f"negative interval_days {record.interval_days}"
    if record.total_reviews < 0:
        return f"negative total_reviews {record.total_reviews}"

    reviewed = record.last_reviewed_at is not None
    scheduled = record.next_due_at is not None
    if reviewed != scheduled:
        return "last_reviewed_at and next_due_at must be set together"
    if reviewed:
        if record.interval_days < 1:
            return "reviewed record with interval_days < 1"
        if record.next_due_at < record.last_reviewed_at:
            return "next_due_at earlier than last_reviewed_at"
        if record.next_due_at != record.last_reviewed_at + timedelta(days=record.interval_days):
            return "next_due_at does not match last_reviewed_at + interval_days"
    elif record.interval_days != 0:
        return "unreviewed record with non-zero interval"

    for entry in record.history:
        if entry.rating < MIN_RATING or entry.rating > MAX_RATING:
            return f"history rating {entry.rating} outside [0, 5]"
    return None


def _normalize(record: SRSRecord) -> SRSRecord:
    """Attach UTC to naive timestamps read back from storage."""
    updates = {}
    if record.last_reviewed_at is not None:
        updates["last_reviewed_at"] = ensure_aware(record.last_reviewed_at)
    if record.next_due_at is not None:
        updates["next_due_at"] = ensure_aware(record.next_due_at)
    if record.created_at is not None:
        updates["created_at"] = ensure_aware(record.created_at)
    history = [
        entry.model_copy(update={"timestamp": ensure_aware(entry.timestamp)})
        for entry in record.history
    ]
    updates["history"] = history
    return record.model_copy(update=updates)


def _retention_after(record: SRSRecord, rating: int) -> float:
    total = record.total_reviews
    score = (record.retention_score * total + (rating / MAX_RATING) * 100) / (total + 1)
    return max(0.0, score)


def _mastery_after(record: SRSRecord, retention: float) -> MasteryLevel:
    if record.total_reviews >= MASTERY_MIN_REVIEWS and retention >= MASTERY_MIN_RETENTION:
        if record.repetition_count >= MASTERED_MIN_REPETITIONS:
            return MasteryLevel.MASTERED
        return MasteryLevel.REVIEWING
    return MasteryLevel.LEARNING


class ReviewStore:
    """Applies the scheduler to a learner's records and persists the result.

    Callers must serialise access per learner (see
    :class:`~vocab_srs.services.review_service.LearnerLockRegistry`); the
    store itself performs a plain read-modify-write.
    """

    def __init__(
        self,
        learner_id: str,
        gateway: SnapshotGateway,
        scheduler: ItemScheduler | None = None,
        history_capacity: int | None = None,
    ):
        self.learner_id = str(learner_id)
        self.gateway = gateway
        self.scheduler = scheduler or ItemScheduler(settings.EASINESS_CEILING)
        self.history_capacity = history_capacity or settings.REVIEW_HISTORY_CAPACITY
        self._records: Dict[str, SRSRecord] = {}
        self.anomalies: List[CorruptRecordError] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, for_update: bool = False) -> LearnerSnapshot:
        """Read the learner's snapshot and keep the repaired records in memory.

        ``for_update`` asks the gateway to hold the learner until the next save.
        """

        if for_update:
            snapshot = self.gateway.load_for_update(self.learner_id)
        else:
            snapshot = self.gateway.load(self.learner_id)
        self._records = {}
        self.anomalies = []

        for item_id, raw in snapshot.records.items():
            record = _normalize(raw)
            violation = find_invariant_violation(record)
            if violation is not None:
                anomaly = CorruptRecordError(str(item_id), violation)
                self.anomalies.append(anomaly)
                logger.warning(
                    "Enregistrement corrompu pour l'apprenant %s: %s",
                    self.learner_id,
                    anomaly,
                )
                record = default_record(item_id, record.created_at)
            self._records[str(item_id)] = record

        return snapshot

    def add_records(self, records: Dict[str, SRSRecord]) -> None:
        self._records.update(records)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_record(self, item_id: str) -> SRSRecord:
        record = self._records.get(str(item_id))
        if record is None:
            return default_record(item_id)
        return record.model_copy(deep=True)

    def all_records(self) -> List[SRSRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    def due_items(self, now: datetime) -> List[str]:
        return due_queue.compute_due_items(self._records.values(), now)

    def __contains__(self, item_id: object) -> bool:
        return str(item_id) in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def build_review(
        self,
        item_id: str,
        rating: int,
        response_time_ms: int,
        now: datetime,
    ) -> SRSRecord:
        """Compute the post-review record without storing it anywhere."""

        rating = validate_rating(rating)
        if response_time_ms < 0:
            raise ValueError("response_time_ms must be >= 0")
        now = to_utc(now)

        current = self._records.get(str(item_id)) or default_record(item_id, now)
        result = self.scheduler.next_state(
            rating,
            SchedulingInput(
                repetition_count=current.repetition_count,
                easiness_factor=current.easiness_factor,
                last_interval_days=current.interval_days,
            ),
        )

        entry = ReviewHistoryEntry(timestamp=now, rating=rating, response_time_ms=response_time_ms)
        history = [*current.history, entry][-self.history_capacity :]
        retention = _retention_after(current, rating)

        return current.model_copy(
            deep=True,
            update={
                "repetition_count": result.repetition_count,
                "easiness_factor": result.easiness_factor,
                "interval_days": result.interval_days,
                "last_reviewed_at": now,
                "next_due_at": now + timedelta(days=result.interval_days),
                "history": history,
                "total_reviews": current.total_reviews + 1,
                "retention_score": retention,
                "mastery_level": _mastery_after(current, retention),
                "created_at": current.created_at or now,
            },
        )

    def commit_review(
        self,
        item_id: str,
        rating: int,
        response_time_ms: int,
        now: datetime,
        goal_state: GoalState | None = None,
    ) -> SRSRecord:
        """Schedule ``item_id`` after a review graded ``rating`` and persist it.

        The updated record (and ``goal_state`` when given, in the same write)
        is handed to the gateway first; the in-memory record is only replaced
        once the write succeeded. A failed write leaves the store exactly as
        it was, so the call can be retried with the same arguments.
        """

        updated = self.build_review(item_id, rating, response_time_ms, now)

        snapshot = LearnerSnapshot(records={updated.item_id: updated}, goal_state=goal_state)
        try:
            self.gateway.save(self.learner_id, snapshot)
        except PersistenceWriteFailure:
            logger.error(
                "Échec d'écriture de la révision %s pour l'apprenant %s.",
                updated.item_id,
                self.learner_id,
            )
            raise

        self._records[updated.item_id] = updated
        logger.debug(
            "Révision enregistrée: apprenant=%s item=%s note=%s intervalle=%sj",
            self.learner_id,
            updated.item_id,
            rating,
            updated.interval_days,
        )
        return updated.model_copy(deep=True)

"""SQLAlchemy-backed snapshot gateway.

A learner snapshot maps onto three tables: ``learners`` (one row per
external learner id), ``srs_records`` (one row per learner and item) and
``goal_states`` (one row per learner). ``save`` upserts in a single
transaction and retries transient database errors with exponential backoff.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vocab_srs.core.config import settings
from vocab_srs.core.exceptions import PersistenceWriteFailure
from vocab_srs.models.goal_state_model import GoalStateRow
from vocab_srs.models.learner_model import Learner
from vocab_srs.models.srs_record_model import SRSRecordRow
from vocab_srs.schemas.progress.goal_schema import GoalState
from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot
from vocab_srs.schemas.srs.srs_schema import SRSRecord
from vocab_srs.services.persistence import SnapshotGateway
from vocab_srs.utils.date_utils import day_key, utcnow

logger = logging.getLogger(__name__)


def get_learner(db: Session, external_id: str) -> Optional[Learner]:
    return db.query(Learner).filter(Learner.external_id == external_id).first()


def get_or_create_learner(db: Session, external_id: str) -> Learner:
    learner = get_learner(db, external_id)
    if learner:
        return learner
    learner = Learner(external_id=external_id)
    db.add(learner)
    db.flush()
    return learner


def _record_from_row(row: SRSRecordRow) -> SRSRecord:
    try:
        return SRSRecord.model_validate(row)
    except ValidationError as exc:
        # Ligne illisible: on repart d'une fiche neuve plutôt que de bloquer l'apprenant.
        logger.warning("Fiche SRS illisible (%s) pour l'item %s: %s", row.id, row.item_id, exc)
        return SRSRecord(item_id=row.item_id, created_at=row.created_at)


def _apply_record(row: SRSRecordRow, record: SRSRecord) -> None:
    row.repetition_count = record.repetition_count
    row.easiness_factor = record.easiness_factor
    row.interval_days = record.interval_days
    row.last_reviewed_at = record.last_reviewed_at
    row.next_due_at = record.next_due_at
    row.history = [entry.model_dump(mode="json") for entry in record.history]
    row.total_reviews = record.total_reviews
    row.retention_score = record.retention_score
    row.mastery_level = record.mastery_level.value
    if record.created_at is not None:
        row.created_at = record.created_at


GOAL_FIELDS = tuple(GoalState.model_fields)


def _apply_goal_state(row: GoalStateRow, state: GoalState) -> None:
    data = state.model_dump()
    for name in GOAL_FIELDS:
        setattr(row, name, data[name])
    # JSON columns need a new list object for change detection.
    row.rewards_unlocked = list(state.rewards_unlocked)


def _goal_state_from_row(row: GoalStateRow) -> GoalState:
    try:
        return GoalState.model_validate(row)
    except ValidationError as exc:
        logger.warning("Objectifs illisibles (%s) pour l'apprenant %s: %s", row.id, row.learner_id, exc)
        broken = {error["loc"][0] for error in exc.errors() if error["loc"]}

    # On garde les colonnes encore valides, les autres reprennent leur valeur par défaut.
    values = {name: getattr(row, name) for name in GOAL_FIELDS if name not in broken}
    values.setdefault("date_key", day_key(utcnow()))
    try:
        return GoalState.model_validate(values)
    except ValidationError:
        return GoalState(date_key=values["date_key"])


def lock_learner(db: Session, external_id: str) -> Optional[Learner]:
    """``SELECT ... FOR UPDATE`` on the learner row, held until commit or rollback."""
    return (
        db.query(Learner)
        .filter(Learner.external_id == external_id)
        .with_for_update()
        .first()
    )


def load_snapshot(db: Session, external_id: str, *, for_update: bool = False) -> LearnerSnapshot:
    learner = lock_learner(db, external_id) if for_update else get_learner(db, external_id)
    if learner is None:
        return LearnerSnapshot()

    rows = (
        db.query(SRSRecordRow)
        .filter(SRSRecordRow.learner_id == learner.id)
        .order_by(SRSRecordRow.item_id)
        .all()
    )
    records: Dict[str, SRSRecord] = {row.item_id: _record_from_row(row) for row in rows}

    goal_row = db.query(GoalStateRow).filter(GoalStateRow.learner_id == learner.id).first()
    goal_state = _goal_state_from_row(goal_row) if goal_row else None
    return LearnerSnapshot(records=records, goal_state=goal_state)


def write_snapshot(db: Session, external_id: str, snapshot: LearnerSnapshot) -> None:
    """Upsert ``snapshot`` and commit. Rolls back on any database error."""

    try:
        learner = get_or_create_learner(db, external_id)

        if snapshot.records:
            existing = {
                row.item_id: row
                for row in db.query(SRSRecordRow)
                .filter(
                    SRSRecordRow.learner_id == learner.id,
                    SRSRecordRow.item_id.in_(list(snapshot.records)),
                )
                .all()
            }
            for item_id, record in snapshot.records.items():
                row = existing.get(item_id)
                if row is None:
                    row = SRSRecordRow(learner_id=learner.id, item_id=item_id)
                    db.add(row)
                _apply_record(row, record)

        if snapshot.goal_state is not None:
            goal_row = db.query(GoalStateRow).filter(GoalStateRow.learner_id == learner.id).first()
            if goal_row is None:
                goal_row = GoalStateRow(learner_id=learner.id)
                db.add(goal_row)
            _apply_goal_state(goal_row, snapshot.goal_state)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


class SqlSnapshotGateway(SnapshotGateway):
    """Gateway over a SQLAlchemy session.

    ``save`` owns the retry policy: up to ``max_retries`` attempts with an
    exponential backoff, then :class:`PersistenceWriteFailure`.
    """

    def __init__(
        self,
        db: Session,
        *,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.max_retries = max(int(settings.PERSISTENCE_MAX_RETRIES if max_retries is None else max_retries), 1)
        self.backoff_seconds = max(
            float(settings.PERSISTENCE_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds),
            0.0,
        )
        self._sleep = sleep

    def load(self, learner_id: str) -> LearnerSnapshot:
        return load_snapshot(self.db, str(learner_id))

    def load_for_update(self, learner_id: str) -> LearnerSnapshot:
        learner_id = str(learner_id)
        # Ends the open transaction so the row lock covers a fresh read.
        self.db.rollback()
        if get_learner(self.db, learner_id) is None:
            # The row must exist before it can be locked.
            try:
                get_or_create_learner(self.db, learner_id)
                self.db.commit()
            except IntegrityError:
                # Créé entre-temps par un autre processus.
                self.db.rollback()
        return load_snapshot(self.db, learner_id, for_update=True)

    def save(self, learner_id: str, snapshot: LearnerSnapshot) -> None:
        learner_id = str(learner_id)
        last_exc: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                write_snapshot(self.db, learner_id, snapshot)
                return
            except SQLAlchemyError as exc:
                last_exc = exc
                if attempt >= self.max_retries:
                    break
                delay = min(30.0, self.backoff_seconds * (2 ** (attempt - 1)))
                logger.warning(
                    "Écriture du snapshot échouée pour %s (tentative %s/%s): %s. Nouvelle tentative dans %.2f s.",
                    learner_id,
                    attempt,
                    self.max_retries,
                    exc,
                    delay,
                )
                self._sleep(delay)

        logger.error("Écriture du snapshot abandonnée pour %s: %s", learner_id, last_exc)
        raise PersistenceWriteFailure(learner_id, str(last_exc) if last_exc else "") from last_exc

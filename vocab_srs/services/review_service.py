"""Review pipeline: store -> session -> goals -> rewards, one learner at a time."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from vocab_srs.core.exceptions import PersistenceWriteFailure, SRSError
from vocab_srs.gamification.reward_engine import RewardEngine
from vocab_srs.schemas.gamification.reward_schema import RewardRead
from vocab_srs.schemas.progress.goal_schema import GoalState, SessionSummary
from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot, ReviewOutcome
from vocab_srs.schemas.srs.srs_schema import SRSRecord
from vocab_srs.services import due_queue
from vocab_srs.services.goal_tracker import GoalTracker
from vocab_srs.services.persistence import SnapshotGateway
from vocab_srs.services.review_store import ReviewStore
from vocab_srs.services.scheduler import is_passing, validate_rating
from vocab_srs.services.session_tracker import SessionTracker
from vocab_srs.utils.date_utils import to_utc, utcnow

logger = logging.getLogger(__name__)


class LearnerLockRegistry:
    """One re-entrant lock per learner id; different learners never contend."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, learner_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(learner_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[learner_id] = lock
            return lock


learner_locks = LearnerLockRegistry()


@dataclass
class ReviewService:
    """All scheduling state of one learner, wired together.

    Build it with :meth:`for_learner`, which loads the stored snapshot.
    """

    learner_id: str
    gateway: SnapshotGateway
    store: ReviewStore
    session: SessionTracker
    goals: GoalTracker
    rewards: RewardEngine
    locks: LearnerLockRegistry = field(default_factory=lambda: learner_locks)

    @classmethod
    def for_learner(
        cls,
        learner_id: str,
        gateway: SnapshotGateway,
        *,
        now: Optional[datetime] = None,
        session: Optional[SessionTracker] = None,
        rewards: Optional[RewardEngine] = None,
        locks: Optional[LearnerLockRegistry] = None,
    ) -> "ReviewService":
        learner_id = str(learner_id)
        locks = locks or learner_locks
        with locks.get(learner_id):
            store = ReviewStore(learner_id, gateway)
            snapshot = store.load()
            goals = GoalTracker()
            goals.load(snapshot.goal_state, now)
        return cls(
            learner_id=learner_id,
            gateway=gateway,
            store=store,
            session=session or SessionTracker(),
            goals=goals,
            rewards=rewards or RewardEngine(),
            locks=locks,
        )

    def _reload(self, now: Optional[datetime] = None) -> None:
        """Re-read the stored snapshot; call with the learner lock held.

        Another service object (another request, another process) may have
        written since this one was built, so every read-modify-write starts
        from what the gateway holds now.
        """
        snapshot = self.store.load(for_update=True)
        self.goals.load(snapshot.goal_state, now)

    @property
    def anomalies(self) -> List[SRSError]:
        return [*self.store.anomalies, *self.goals.anomalies]

    # ------------------------------------------------------------------
    # Soumission d'une révision
    # ------------------------------------------------------------------
    def submit_review(
        self,
        item_id: str,
        rating: int,
        response_time_ms: int = 0,
        now: Optional[datetime] = None,
    ) -> ReviewOutcome:
        """Grade ``item_id`` and propagate the answer to every tracker.

        Nothing becomes visible until the record and the new goal state have
        been written together: on :class:`PersistenceWriteFailure` the store,
        session and goal state still match what the gateway holds.
        """

        rating = validate_rating(rating)
        now = to_utc(now or utcnow())

        with self.locks.get(self.learner_id):
            self._reload(now)
            session_state, gained = self.session.preview_answer(rating, response_time_ms, item_id)
            goal_state = self.goals.preview_progress(
                words_delta=1,
                time_delta_seconds=response_time_ms / 1000,
                was_correct=is_passing(rating),
                now=now,
                experience_delta=gained,
            )

            unlocked = list(goal_state.rewards_unlocked)
            new_rewards = self.rewards.evaluate(goal_state.streak_current, goal_state.experience_total, unlocked)
            goal_state = goal_state.model_copy(update={"rewards_unlocked": unlocked})

            try:
                record = self.store.commit_review(item_id, rating, response_time_ms, now, goal_state=goal_state)
            except PersistenceWriteFailure:
                logger.warning("Révision %s non enregistrée pour %s, à réessayer.", item_id, self.learner_id)
                raise

            summary = self.session.apply(session_state, gained)
            goal_state = self.goals.apply(goal_state)

        return ReviewOutcome(
            record=record,
            session=summary,
            goal_state=goal_state,
            new_rewards=[RewardRead.model_validate(reward) for reward in new_rewards],
        )

    # ------------------------------------------------------------------
    # Lectures
    # ------------------------------------------------------------------
    def due_items(self, now: Optional[datetime] = None) -> List[str]:
        return self.store.due_items(now or utcnow())

    def next_item(
        self,
        candidate_ids: Sequence[str] = (),
        now: Optional[datetime] = None,
        rng: Optional[random.Random] = None,
    ) -> tuple[Optional[str], str]:
        return due_queue.choose_next_item(self.store.all_records(), candidate_ids, now or utcnow(), rng)

    def get_record(self, item_id: str) -> SRSRecord:
        return self.store.get_record(item_id)

    def goal_state(self, now: Optional[datetime] = None) -> GoalState:
        with self.locks.get(self.learner_id):
            return self.goals.load(self.goals.state, now)

    def session_summary(self) -> SessionSummary:
        return self.session.summary()

    def reset_session(self) -> SessionSummary:
        return self.session.reset()

    def update_targets(
        self, words_target: int, time_target_seconds: int, now: Optional[datetime] = None
    ) -> GoalState:
        with self.locks.get(self.learner_id):
            self._reload(now)
            previous = self.goals.state
            updated = self.goals.update_targets(words_target, time_target_seconds)
            try:
                self.gateway.save(self.learner_id, LearnerSnapshot(goal_state=updated))
            except PersistenceWriteFailure:
                self.goals.state = previous
                raise
            return updated

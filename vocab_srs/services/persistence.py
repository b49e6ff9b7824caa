"""Persistence gateway contract for learner snapshots.

The scheduling core never talks to a storage medium directly; it receives a
:class:`SnapshotGateway` and calls ``load``/``save``. The SQLAlchemy
implementation lives in :mod:`vocab_srs.crud.snapshot_crud`.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict

from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot

logger = logging.getLogger(__name__)


class SnapshotGateway(ABC):
    """Storage port for per-learner scheduling snapshots."""

    @abstractmethod
    def load(self, learner_id: str) -> LearnerSnapshot:
        """Return the stored snapshot, or an empty one for an unknown learner."""

    def load_for_update(self, learner_id: str) -> LearnerSnapshot:
        """Like ``load``, but keep other writers of the learner out until ``save``.

        Used for read-modify-write cycles. In-process callers are already
        serialised by the learner lock, so the default is a plain ``load``.
        """
        return self.load(learner_id)

    @abstractmethod
    def save(self, learner_id: str, snapshot: LearnerSnapshot) -> None:
        """Upsert the records and goal state carried by ``snapshot``.

        Records are never deleted, so a snapshot holding only the records that
        changed is a complete write. Implementations raise
        :class:`~vocab_srs.core.exceptions.PersistenceWriteFailure` when the
        write cannot be completed; nothing may be partially applied.
        """


class InMemorySnapshotGateway(SnapshotGateway):
    """Process-local gateway, used by tests and single-process embedding."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, LearnerSnapshot] = {}
        self._lock = threading.Lock()
        self.save_count = 0

    def load(self, learner_id: str) -> LearnerSnapshot:
        with self._lock:
            stored = self._snapshots.get(learner_id)
            if stored is None:
                return LearnerSnapshot()
            return stored.model_copy(deep=True)

    def save(self, learner_id: str, snapshot: LearnerSnapshot) -> None:
        with self._lock:
            current = self._snapshots.get(learner_id) or LearnerSnapshot()
            merged = current.model_copy(deep=True)
            for item_id, record in snapshot.records.items():
                merged.records[item_id] = record.model_copy(deep=True)
            if snapshot.goal_state is not None:
                merged.goal_state = snapshot.goal_state.model_copy(deep=True)
            self._snapshots[learner_id] = merged
            self.save_count += 1
        logger.debug(
            "Snapshot en mémoire enregistré pour %s (%d enregistrements).",
            learner_id,
            len(snapshot.records),
        )

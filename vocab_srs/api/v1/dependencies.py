import logging
import threading
from typing import Dict

from sqlalchemy.orm import Session

from vocab_srs.crud.snapshot_crud import SqlSnapshotGateway
from vocab_srs.db.session import get_db  # noqa: F401 - re-exported for the routers
from vocab_srs.services.review_service import ReviewService
from vocab_srs.services.session_tracker import SessionTracker

log = logging.getLogger(__name__)


class SessionRegistry:
    """Sessions vivent en mémoire du processus, une par apprenant."""

    def __init__(self) -> None:
        self._trackers: Dict[str, SessionTracker] = {}
        self._guard = threading.Lock()

    def get(self, learner_id: str) -> SessionTracker:
        with self._guard:
            tracker = self._trackers.get(learner_id)
            if tracker is None:
                log.info("Ouverture d'une session pour l'apprenant %s.", learner_id)
                tracker = SessionTracker()
                self._trackers[learner_id] = tracker
            return tracker

    def clear(self) -> None:
        with self._guard:
            self._trackers.clear()


session_registry = SessionRegistry()


def build_review_service(learner_id: str, db: Session) -> ReviewService:
    return ReviewService.for_learner(
        learner_id,
        SqlSnapshotGateway(db),
        session=session_registry.get(str(learner_id)),
    )

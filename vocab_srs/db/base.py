"""Importe tous les modèles pour que ``Base.metadata`` les connaisse."""

from vocab_srs.db.base_class import Base

from vocab_srs.models.learner_model import Learner
from vocab_srs.models.srs_record_model import SRSRecordRow
from vocab_srs.models.goal_state_model import GoalStateRow

__all__ = ["Base", "Learner", "SRSRecordRow", "GoalStateRow"]

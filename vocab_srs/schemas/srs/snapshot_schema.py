"""Logical layout of what the persistence gateway stores per learner."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from vocab_srs.schemas.gamification.reward_schema import RewardRead
from vocab_srs.schemas.progress.goal_schema import GoalState, SessionSummary
from vocab_srs.schemas.srs.srs_schema import SRSRecord


class LearnerSnapshot(BaseModel):
    """Per-learner blob: every scheduling record plus the goal state.

    ``rewards_unlocked`` lives inside ``goal_state``. A snapshot handed to
    ``save`` may carry only the records that changed.
    """

    records: Dict[str, SRSRecord] = Field(default_factory=dict)
    goal_state: Optional[GoalState] = None


class ReviewOutcome(BaseModel):
    """Everything the presentation layer needs after one graded answer."""

    record: SRSRecord
    session: SessionSummary
    goal_state: GoalState
    new_rewards: List[RewardRead] = Field(default_factory=list)

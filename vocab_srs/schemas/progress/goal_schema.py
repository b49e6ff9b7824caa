"""Schémas Pydantic pour les objectifs quotidiens et la session en cours."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from vocab_srs.core.config import settings


class GoalState(BaseModel):
    """Daily targets and progress for one learner.

    Daily counters are scoped to ``date_key``; streaks, experience and
    unlocked rewards carry over from one day to the next.
    """

    model_config = ConfigDict(from_attributes=True)

    date_key: str
    words_target: int = Field(default_factory=lambda: settings.DEFAULT_WORDS_TARGET)
    time_target_seconds: int = Field(default_factory=lambda: settings.DEFAULT_TIME_TARGET_SECONDS)

    words_reviewed_today: int = 0
    time_spent_today_seconds: float = 0.0
    correct_today: int = 0
    answered_today: int = 0
    accuracy_today: float = 0.0
    goals_completed_today: bool = False

    streak_current: int = 0
    streak_best: int = 0
    last_study_date: Optional[str] = None
    experience_total: int = 0
    rewards_unlocked: List[str] = Field(default_factory=list)


class GoalTargetsUpdate(BaseModel):
    words_target: int = Field(..., ge=1)
    time_target_seconds: int = Field(..., ge=0)


class GoalProgressResponse(BaseModel):
    goal_state: GoalState
    words_progress_pct: float
    time_progress_pct: float
    level: int
    xp_for_next_level: int


class SessionSummary(BaseModel):
    """Read-only projection of the learner's current session."""

    correct_count: int = 0
    incorrect_count: int = 0
    current_streak: int = 0
    experience_points: int = 0
    experience_gained: int = 0
    performance_trend: List[int] = Field(default_factory=list)
    average_response_time_ms: float = 0.0
    answers: int = 0
    items_studied: int = 0
    accuracy: float = 0.0
    started_at: Optional[datetime] = None

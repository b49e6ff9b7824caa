"""Ephemeral per-session counters."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Deque, Optional, Set

from vocab_srs.core.config import settings
from vocab_srs.schemas.progress.goal_schema import SessionSummary
from vocab_srs.services.scheduler import is_passing, validate_rating
from vocab_srs.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

RATING_XP_MULTIPLIER = 10


def _trend_deque() -> Deque[int]:
    return deque(maxlen=settings.PERFORMANCE_TREND_SIZE)


@dataclass
class SessionState:
    correct_count: int = 0
    incorrect_count: int = 0
    current_streak: int = 0
    experience_points: int = 0
    performance_trend: Deque[int] = field(default_factory=_trend_deque)
    average_response_time_ms: float = 0.0
    answers: int = 0
    items_studied: Set[str] = field(default_factory=set)
    started_at: Optional[datetime] = None

    def copy(self) -> "SessionState":
        return replace(
            self,
            performance_trend=deque(self.performance_trend, maxlen=self.performance_trend.maxlen),
            items_studied=set(self.items_studied),
        )


def experience_for(rating: int, streak: int) -> int:
    """XP earned by one answer, given the correct-answer streak after it."""
    bonus = settings.STREAK_BONUS_XP if streak >= settings.STREAK_BONUS_THRESHOLD else 0
    return rating * RATING_XP_MULTIPLIER + bonus


def summarize(state: SessionState, experience_gained: int = 0) -> SessionSummary:
    accuracy = (state.correct_count / state.answers * 100) if state.answers else 0.0
    return SessionSummary(
        correct_count=state.correct_count,
        incorrect_count=state.incorrect_count,
        current_streak=state.current_streak,
        experience_points=state.experience_points,
        experience_gained=experience_gained,
        performance_trend=list(state.performance_trend),
        average_response_time_ms=state.average_response_time_ms,
        answers=state.answers,
        items_studied=len(state.items_studied),
        accuracy=accuracy,
        started_at=state.started_at,
    )


class SessionTracker:
    """Counters for the learner's current sitting; never persisted."""

    def __init__(self) -> None:
        self.state = SessionState(started_at=utcnow())
        self._last_gain = 0

    def preview_answer(
        self,
        rating: int,
        response_time_ms: int,
        item_id: Optional[str] = None,
    ) -> tuple[SessionState, int]:
        """Return the state after ``rating`` and the XP gained, without mutating."""

        rating = validate_rating(rating)
        if response_time_ms < 0:
            raise ValueError("response_time_ms must be >= 0")

        state = self.state.copy()
        if is_passing(rating):
            state.correct_count += 1
            state.current_streak += 1
        else:
            state.incorrect_count += 1
            state.current_streak = 0

        gained = experience_for(rating, state.current_streak)
        state.experience_points += gained
        state.performance_trend.append(rating)

        state.answers += 1
        state.average_response_time_ms += (response_time_ms - state.average_response_time_ms) / state.answers
        if item_id is not None:
            state.items_studied.add(str(item_id))
        return state, gained

    def apply(self, state: SessionState, experience_gained: int = 0) -> SessionSummary:
        self.state = state
        self._last_gain = experience_gained
        return self.summary()

    def record_answer(
        self,
        rating: int,
        response_time_ms: int,
        item_id: Optional[str] = None,
    ) -> SessionSummary:
        state, gained = self.preview_answer(rating, response_time_ms, item_id)
        return self.apply(state, gained)

    def reset(self) -> SessionSummary:
        logger.info("Nouvelle session démarrée.")
        self.state = SessionState(started_at=utcnow())
        self._last_gain = 0
        return self.summary()

    def summary(self) -> SessionSummary:
        return summarize(self.state, self._last_gain)
